"""Attachment-aware responder for GitHub issue and pull request activity."""
