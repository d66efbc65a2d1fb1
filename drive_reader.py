# drive_reader.py
import io
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as UserCredentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from errors import ConfigError, SourceFetchError

log = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
GOOGLE_SHEET_MIME = "application/vnd.google-apps.spreadsheet"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
FOLDER_MIME = "application/vnd.google-apps.folder"
FILE_FIELDS = "nextPageToken, files(id, name, mimeType, modifiedTime, trashed)"


# ---------- credentials ----------

def load_google_credentials(settings):
    """
    service_account -> GOOGLE_SERVICE_ACCOUNT_JSON (key file)
    oauth           -> GOOGLE_OAUTH_TOKEN_JSON (authorized user token saved earlier)
    Any problem here is a configuration error; nothing is retried.
    """
    auth_type = (settings.google_auth_type or "service_account").lower()
    if auth_type == "service_account":
        path = settings.google_service_account_json
        if not path:
            raise ConfigError("Set GOOGLE_SERVICE_ACCOUNT_JSON in .env (e.g. ./sa.json)")
        if not os.path.exists(path):
            raise ConfigError(f"Service account file not found: {path}")
        try:
            return service_account.Credentials.from_service_account_file(path, scopes=SCOPES)
        except (ValueError, OSError) as e:
            raise ConfigError(f"Invalid service account file {path}: {e}") from e

    if auth_type == "oauth":
        path = settings.google_oauth_token_json
        if not path:
            raise ConfigError("Set GOOGLE_OAUTH_TOKEN_JSON in .env")
        if not os.path.exists(path):
            raise ConfigError(f"OAuth token file not found: {path}")
        try:
            return UserCredentials.from_authorized_user_file(path, scopes=SCOPES)
        except (ValueError, OSError) as e:
            raise ConfigError(f"Invalid OAuth token file {path}: {e}") from e

    raise ConfigError(f"Unknown GOOGLE_AUTH_TYPE: {auth_type}")


def build_drive_service(credentials):
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


# ---------- selection ----------

def pick_latest(files: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Most recently modified, non-trashed entry that is not a folder. Ties keep the first one seen.
    modifiedTime is RFC 3339 in UTC ("2024-05-01T12:00:00.000Z"), so string
    comparison orders it correctly; entries without it sort last.
    """
    best: Optional[Dict[str, Any]] = None
    for f in files:
        if f.get("trashed") or f.get("mimeType") == FOLDER_MIME:
            continue
        if best is None or (f.get("modifiedTime") or "") > (best.get("modifiedTime") or ""):
            best = f
    if best is None:
        raise SourceFetchError("No file found in the Drive folder")
    return best


def list_folder(service, folder_id: str) -> List[Dict[str, Any]]:
    q = f"'{folder_id}' in parents and trashed = false and mimeType != '{FOLDER_MIME}'"
    files: List[Dict[str, Any]] = []
    token = None
    while True:
        resp = service.files().list(
            q=q,
            orderBy="modifiedTime desc",
            pageSize=100,
            fields=FILE_FIELDS,
            pageToken=token,
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        ).execute()
        files.extend(resp.get("files", []))
        token = resp.get("nextPageToken")
        if not token:
            return files


def _download(request) -> bytes:
    buf = io.BytesIO()
    downloader = MediaIoBaseDownload(buf, request)
    done = False
    while not done:
        _, done = downloader.next_chunk()
    return buf.getvalue()


def fetch_latest_document(folder_id: str, service) -> Tuple[bytes, Dict[str, Any]]:
    """
    Returns (content, metadata) of the newest file in the folder.
    Native Google Sheets are exported as XLSX and their name gets a .xlsx suffix.
    """
    if not folder_id:
        raise ConfigError("GDRIVE_FOLDER_ID is not set in .env")

    try:
        files = list_folder(service, folder_id)
        meta = dict(pick_latest(files))
        log.info(f"[DRIVE] {len(files)} file(s) in folder, using {meta.get('name')} "
                 f"(modified {meta.get('modifiedTime')})")

        if meta.get("mimeType") == GOOGLE_SHEET_MIME:
            request = service.files().export_media(fileId=meta["id"], mimeType=XLSX_MIME)
            meta["name"] = f"{meta.get('name') or meta['id']}.xlsx"
            meta["mimeType"] = XLSX_MIME
        else:
            request = service.files().get_media(fileId=meta["id"], supportsAllDrives=True)
        data = _download(request)
    except HttpError as e:
        raise SourceFetchError(f"Drive request failed: {e}") from e

    if not data:
        raise SourceFetchError(f"Downloaded file {meta.get('name')} is empty")
    return data, meta


# ---------- decoding ----------

def read_rows(data: bytes, name: str = "") -> List[Dict[str, Any]]:
    """First sheet (or the CSV) -> list of {header: value}; empty cells become ''."""
    lower = (name or "").lower()
    try:
        if lower.endswith(".csv"):
            df = pd.read_csv(io.BytesIO(data), dtype=object)
        else:
            df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
    except Exception as e:  # pandas/openpyxl raise a zoo of types on corrupt input
        raise SourceFetchError(f"Cannot decode {name or 'document'}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all").fillna("")
    return df.to_dict(orient="records")
