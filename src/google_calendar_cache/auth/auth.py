from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build


def get_calendar_service(credentials: Credentials):
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)
