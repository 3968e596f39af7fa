"""Tests for extension and category detection."""

import pytest

from issue_responder.attachments.classifier import categorise_extension, classify, get_file_extension
from issue_responder.attachments.models import AttachmentReference, MatchedAttachment, ResolvedURL

ASSET = "https://github.com/user-attachments/assets/416e686f-3fe1-40aa-885d-bb54c4a6cbdb"


class TestGetFileExtension:
    """Tests for get_file_extension."""

    def test_image_extension_from_signed_url_path(self):
        signed = "https://private-user-images.githubusercontent.com/1/416e686f.JPEG?jwt=abc.def"

        assert get_file_extension(ASSET, signed, is_image_shaped=True) == ".jpeg"

    def test_image_fallback_takes_last_token_in_path(self):
        signed = "https://private-user-images.githubusercontent.com/1/shot.webp/raw?jwt=abc"

        assert get_file_extension(ASSET, signed, is_image_shaped=True) == ".webp"

    def test_image_defaults_to_png(self):
        signed = "https://private-user-images.githubusercontent.com/1/416e686f?jwt=abc.def"

        assert get_file_extension(ASSET, signed, is_image_shaped=True) == ".png"

    def test_file_extension_from_original_url(self):
        original = "https://github.com/user-attachments/files/42/Report.PDF"
        signed = "https://github.com/user-attachments/files/42/Report.PDF"

        assert get_file_extension(original, signed, is_image_shaped=False) == ".pdf"

    def test_file_without_extension_gets_ignore_sentinel(self):
        original = "https://github.com/user-attachments/files/42/Makefile"

        assert get_file_extension(original, original, is_image_shaped=False) == ".bin"


class TestCategorise:
    """Tests for category lookup."""

    @pytest.mark.parametrize(
        "extension, category",
        [
            (".png", "images"),
            (".PDF", "documents"),
            (".csv", "spreadsheets"),
            (".pptx", "presentations"),
            (".zip", "archives"),
            (".json", "code"),
            (".sql", "data"),
            (".mp4", "media"),
            (".bin", "other"),
            (".exe", "other"),
        ],
    )
    def test_lookup(self, extension, category):
        assert categorise_extension(extension) == category

    def test_classify_combines_extension_and_category(self):
        matched = MatchedAttachment(
            reference=AttachmentReference(url=ASSET, ordinal=0),
            resolved=ResolvedURL(
                url="https://private-user-images.githubusercontent.com/1/x.gif?jwt=t",
                ordinal=0,
                is_image_shaped=True,
            ),
        )

        classified = classify(matched)

        assert classified.extension == ".gif"
        assert classified.category == "images"
        assert classified.original_url == ASSET
