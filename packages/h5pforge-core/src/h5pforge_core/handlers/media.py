"""Media handlers: image, audio and YouTube video."""

from __future__ import annotations

from urllib.parse import urlparse

from h5pforge_core.handlers.base import (
    ContentHandler,
    RawItem,
    ValidationResult,
    check_string,
    first_failure,
)
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import file_reference, fragment

YOUTUBE_HOSTS = ("youtube.com", "youtu.be")

VIDEO_L10N = {
    "name": "Video",
    "loading": "Video player loading...",
    "noPlayers": "Found no video players that supports the given video format.",
    "noSources": "Video source is missing.",
    "aborted": "Media playback has been aborted.",
    "networkFailure": "Network failure.",
    "cannotDecode": "Unable to decode media.",
    "formatNotSupported": "Video format not supported.",
    "mediaEncrypted": "Media encrypted.",
    "unknownError": "Unknown error.",
    "invalidYtId": "Invalid YouTube ID.",
    "unknownYtId": "Unable to find video with the given YouTube ID.",
    "restrictedYt": "The owner of this video does not allow it to be embedded.",
}


class ImageHandler(ContentHandler):
    """``type: image`` with ``path`` (file or URL), ``alt`` and optional ``title``."""

    content_type = "image"
    libraries = ("H5P.Image 1.1",)

    def validate(self, item: RawItem) -> ValidationResult:
        return first_failure(
            check_string(item, "path", label="Image content"),
            check_string(item, "alt", label="Image content"),
            check_string(item, "title", label="Image content", required=False),
        )

    def process(self, context: HandlerContext, item: RawItem) -> None:
        asset = context.add_media(item["path"], kind="image")
        context.add_fragment(
            fragment(
                self.libraries[0],
                {
                    "contentName": "Image",
                    "file": file_reference(asset.destination_path, asset.mime_type),
                    "alt": item["alt"],
                },
                content_type="Image",
                title=item.get("title") or item["alt"],
            )
        )


class AudioHandler(ContentHandler):
    content_type = "audio"
    libraries = ("H5P.Audio 1.5",)

    def validate(self, item: RawItem) -> ValidationResult:
        return first_failure(
            check_string(item, "path", label="Audio content"),
            check_string(item, "title", label="Audio content", required=False),
        )

    def process(self, context: HandlerContext, item: RawItem) -> None:
        asset = context.add_media(item["path"], kind="audio")
        context.add_fragment(
            fragment(
                self.libraries[0],
                {
                    "contentName": "Audio",
                    "files": [file_reference(asset.destination_path, asset.mime_type)],
                    "playerMode": "full",
                    "fitToWrapper": False,
                    "controls": True,
                    "autoplay": False,
                    "audioNotSupported": "Your browser does not support this audio",
                    "playAudio": "Play audio",
                    "pauseAudio": "Pause audio",
                },
                content_type="Audio",
                title=item.get("title") or "Audio",
            )
        )


class VideoHandler(ContentHandler):
    """``type: video`` with a YouTube ``url``; the video is streamed, not packaged."""

    content_type = "video"
    libraries = ("H5P.Video 1.6",)

    def validate(self, item: RawItem) -> ValidationResult:
        result = first_failure(
            check_string(item, "url", label="Video content"),
            check_string(item, "title", label="Video content", required=False),
        )
        if not result.valid:
            return result
        host = urlparse(item["url"]).netloc.lower()
        if not any(host == h or host.endswith("." + h) for h in YOUTUBE_HOSTS):
            return ValidationResult.invalid(
                "Video 'url' must be a YouTube URL (youtube.com or youtu.be)", "url"
            )
        return ValidationResult.ok()

    def process(self, context: HandlerContext, item: RawItem) -> None:
        context.add_fragment(
            fragment(
                self.libraries[0],
                {
                    "visuals": {"fit": True, "controls": True},
                    "playback": {"autoplay": False, "loop": False},
                    "l10n": dict(VIDEO_L10N),
                    "sources": [
                        {
                            "path": item["url"],
                            "mime": "video/YouTube",
                            "copyright": {"license": "U"},
                        }
                    ],
                },
                content_type="Video",
                title=item.get("title") or "Video",
            )
        )
