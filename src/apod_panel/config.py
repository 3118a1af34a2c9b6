from datetime import date

from pydantic import BaseModel

APOD_API_URL = "https://api.nasa.gov/planetary/apod"
APOD_ARCHIVE_URL = "https://apod.nasa.gov/apod"
DEMO_API_KEY = "DEMO_KEY"

# First day of the sampling window for random pictures
EARLIEST_DATE = date(2010, 2, 1)


class PanelConfig(BaseModel):
    endpoint: str = APOD_API_URL
    api_key: str = DEMO_API_KEY
    archive_url: str = APOD_ARCHIVE_URL
    earliest_date: date = EARLIEST_DATE

    # None leaves httpx's own default in place
    timeout: float | None = None
    user_agent: str = "apod-panel/0.1"
