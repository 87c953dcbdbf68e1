import logging

import uvicorn

from sitemapper import config as env
from sitemapper.api.server import create_app
from sitemapper.container import Container

logger = logging.getLogger(__name__)


def main(container: Container = None):
    """Start the control API.

    Args:
        container: Optional DI container (a fresh one is built when omitted).
    """
    logging.basicConfig(
        level=env.get_str_env("SITEMAPPER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if container is None:
        container = Container()

    app = create_app(container)
    host = env.get_str_env("SITEMAPPER_HOST", "0.0.0.0")
    port = env.get_int_env("SITEMAPPER_PORT", 8000)
    logger.info("Control API listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == '__main__':
    main()
