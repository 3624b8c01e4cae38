import time
from loguru import logger
from pymongo.errors import ServerSelectionTimeoutError
from mongoengine import connect, disconnect_all


def _public_host(uri: str) -> str:
    # Everything after the credentials
    return uri.split("@")[-1]


def _connection_settings(app, overrides) -> dict:
    settings = {
        "host": app.config["MONGODB_URI"],
        "serverSelectionTimeoutMS": app.config.get(
            "MONGODB_SERVER_SELECTION_TIMEOUT_MS", 30000
        ),
        "connectTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "maxPoolSize": 100,
        "retryReads": True,
        "uuidRepresentation": "standard",
    }
    settings.update(overrides)
    return settings


def connect_db(app, max_retries=5, retry_delay=10, **connection_kwargs):
    """
    Open the default MongoEngine connection, retrying while the server is unreachable.

    Args:
        app: Flask application instance; MONGODB_URI is read from its config
        max_retries: Maximum number of connection attempts
        retry_delay: Delay between retries in seconds
        connection_kwargs: Extra arguments for mongoengine.connect

    Returns:
        The connected client

    Raises:
        ServerSelectionTimeoutError: If connection fails after max retries
    """
    disconnect_all()

    settings = _connection_settings(app, connection_kwargs)
    app.config["MONGODB_SETTINGS"] = settings
    host = _public_host(settings["host"])
    logger.info(f"Attempting to connect to MongoDB at: {host}")

    for attempt in range(1, max_retries + 1):
        try:
            client = connect(alias="default", **settings)
            client.admin.command("ping")
            logger.info(f"MongoDB connected successfully on attempt {attempt}")
            return client
        except ServerSelectionTimeoutError as e:
            logger.warning(
                f"Attempt {attempt}/{max_retries}: MongoDB at {host} not reachable "
                f"within {settings['serverSelectionTimeoutMS']}ms: {e}"
            )
        except Exception as e:
            logger.error(
                f"Attempt {attempt}/{max_retries}: Unexpected error during MongoDB "
                f"connection ({type(e).__name__}): {e}"
            )

        disconnect_all()
        if attempt < max_retries:
            logger.info(f"Retrying MongoDB connection in {retry_delay} seconds")
            time.sleep(retry_delay)

    error_msg = (
        f"MongoDB connection failed after {max_retries} attempts. "
        f"Host={host}, Timeout={settings['serverSelectionTimeoutMS']}ms"
    )
    logger.error(error_msg)
    raise ServerSelectionTimeoutError(error_msg)
