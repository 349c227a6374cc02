import logging
from datetime import datetime, timedelta, timezone

import dropbox
from dropbox.exceptions import ApiError
from dropbox.sharing import SharedLinkSettings
from flask import current_app, g

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class DropboxStorage:
    """Bucket-style object storage on top of a Dropbox app folder.

    ``bucket/path`` is stored at ``/<root>/<bucket>/<path>``.
    """

    def __init__(self, client, root="LMS"):
        self.dbx = client
        self.root = root.strip("/")

    @classmethod
    def from_config(cls, config):
        app_key = config.get("DROPBOX_APP_KEY")
        app_secret = config.get("DROPBOX_APP_SECRET")
        refresh_token = config.get("DROPBOX_REFRESH_TOKEN")
        if not all([app_key, app_secret, refresh_token]):
            raise StorageError(
                "Missing Dropbox credentials! Set DROPBOX_APP_KEY, DROPBOX_APP_SECRET, and DROPBOX_REFRESH_TOKEN."
            )

        # Dropbox client with auto-refresh
        client = dropbox.Dropbox(
            oauth2_refresh_token=refresh_token,
            app_key=app_key,
            app_secret=app_secret,
        )
        return cls(client, root=config.get("DROPBOX_ROOT", "LMS"))

    def _path(self, bucket, path):
        return f"/{self.root}/{bucket}/{path.lstrip('/')}"

    def upload(self, bucket, path, data, content_type=None):
        dropbox_path = self._path(bucket, path)
        try:
            self.dbx.files_upload(data, dropbox_path, mode=dropbox.files.WriteMode("overwrite"))
        except ApiError as e:
            logger.error("Dropbox upload failed for %s: %s", dropbox_path, e)
            raise StorageError(f"Upload failed: {dropbox_path}") from e
        return dropbox_path

    def download(self, bucket, path):
        dropbox_path = self._path(bucket, path)
        try:
            _, response = self.dbx.files_download(dropbox_path)
            return response.content
        except ApiError as e:
            logger.error("Dropbox download failed for %s: %s", dropbox_path, e)
            raise StorageError(f"Download failed: {dropbox_path}") from e

    def remove(self, bucket, path):
        dropbox_path = self._path(bucket, path)
        try:
            self.dbx.files_delete_v2(dropbox_path)
        except ApiError as e:
            logger.error("Dropbox delete failed for %s: %s", dropbox_path, e)
            raise StorageError(f"Delete failed: {dropbox_path}") from e

    def create_signed_url(self, bucket, path, expires_in):
        """Shared link to ``bucket/path`` that stops working after ``expires_in`` seconds."""
        dropbox_path = self._path(bucket, path)
        # Dropbox expects a naive UTC timestamp
        expires = (datetime.now(timezone.utc) + timedelta(seconds=expires_in)).replace(tzinfo=None)
        settings = SharedLinkSettings(expires=expires)

        try:
            try:
                shared_link = self.dbx.sharing_create_shared_link_with_settings(dropbox_path, settings=settings)
            except ApiError as e:
                if not (hasattr(e.error, "is_shared_link_already_exists") and e.error.is_shared_link_already_exists()):
                    raise
                existing_links = self.dbx.sharing_list_shared_links(path=dropbox_path, direct_only=True).links
                if not existing_links:
                    raise
                shared_link = self.dbx.sharing_modify_shared_link_settings(existing_links[0].url, settings=settings)
        except ApiError as e:
            logger.error("Dropbox shared link failed for %s: %s", dropbox_path, e)
            raise StorageError(f"Could not create download link: {dropbox_path}") from e

        return shared_link.url.replace("dl=0", "dl=1")


def get_storage():
    """Storage client for the current request, built from the app's storage factory."""
    if "storage" not in g:
        factory = current_app.extensions.get("storage_factory")
        if factory is None:
            g.storage = DropboxStorage.from_config(current_app.config)
        else:
            g.storage = factory()
    return g.storage
