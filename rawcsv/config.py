import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from rawcsv.loader import DEFAULT_PREFIX

DEFAULT_DATABASE = "rawcsv.sqlite"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Settings:
    """
    Runtime settings for the command line.

    Values come from the environment (or a ``.env`` file in the working directory):

    - ``RAWCSV_DATABASE``: SQLite file tables are written to.
    - ``RAWCSV_PREFIX``: Default table name prefix.
    - ``RAWCSV_LOG_LEVEL``: Logging level name (DEBUG, INFO, WARNING, ...).
    """

    database: str = DEFAULT_DATABASE
    prefix: str = DEFAULT_PREFIX
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            database=os.getenv("RAWCSV_DATABASE", DEFAULT_DATABASE),
            prefix=os.getenv("RAWCSV_PREFIX", DEFAULT_PREFIX),
            log_level=os.getenv("RAWCSV_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
