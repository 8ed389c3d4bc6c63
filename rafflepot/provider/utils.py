import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def open_session(token_env: str, token: Optional[str] = None) -> requests.Session:
    """Open a requests session carrying the bearer token for an external service.

    Parameters
    ----------
    token_env : str
        Name of the environment variable holding the token, consulted when
        ``token`` is not supplied.
    token : Optional[str]
        Explicit token overriding the environment.

    Returns
    -------
    requests.Session
        Session with ``Accept`` and (when a token is known) ``Authorization``
        headers set.

    Raises
    ------
    RuntimeError
        If the session cannot be created. The underlying exception is chained.
    """
    resolved = token or os.environ.get(token_env)
    try:
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        if resolved:
            session.headers.update({"Authorization": f"Bearer {resolved}"})
            # Never log the token value
            logger.debug("Bearer token configured from %s", "argument" if token else token_env)
        else:
            logger.debug("No token configured in %s; sending anonymous requests", token_env)
        return session
    except Exception as e:
        logger.critical(f"Error occurred while starting session: {e}")
        raise RuntimeError(f"Failed to establish session: {e}") from e
