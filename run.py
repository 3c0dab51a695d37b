# run.py

import sys

from rich.console import Console
from rich.panel import Panel

from groupie_tracker.catalog.aggregator import ArtistAggregator
from groupie_tracker.catalog.cache import ArtistCache
from groupie_tracker.catalog.service import ArtistCatalog
from groupie_tracker.spotify.auth import TokenManager
from groupie_tracker.spotify.connector import SpotifyConnector
from groupie_tracker.utils.config_loader import load_config, ConfigError
from groupie_tracker.utils.logger import setup_logger
from groupie_tracker.web.app import create_app


def build_catalog(config: dict, logger) -> ArtistCatalog:
    """Wire the token manager, upstream client, aggregator and cache into one catalog"""
    tokens = TokenManager(config['spotify'], logger)
    spotify = SpotifyConnector(config['spotify'], logger, token_manager=tokens, session=tokens.session)
    aggregator = ArtistAggregator(spotify, config['catalog'], logger)
    cache = ArtistCache(aggregator.fetch_all, logger, ttl=config['catalog']['cache_ttl'])
    return ArtistCatalog(cache, spotify, logger)


def main():
    logger = setup_logger()
    console = Console()

    try:
        logger.info("Loading configuration...")
        config = load_config()
        logger.info("Configuration loaded successfully!")

        catalog = build_catalog(config, logger)
        if not catalog.spotify.tokens.is_configured:
            logger.warning("Spotify credentials are not configured; pages will show an error banner")
        elif not catalog.spotify.test_connection():
            logger.warning("Spotify connection test failed; pages will retry on demand")

        app = create_app(catalog, config, logger)
        server = config['server']
        url = f"http://{server['host']}:{server['port']}"
        console.print(Panel.fit(f"Groupie Tracker running on [bold green]{url}[/bold green]",
                                title="Server started"))
        app.run(host=server['host'], port=server['port'], debug=server['debug'], threaded=True)
        return 0

    except ConfigError as e:
        logger.error(f"Configuration Error: {str(e)}")
        logger.info("Please update your configuration and try again.")
        return 1
    except Exception as e:
        logger.critical(f"An unexpected error occurred: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
