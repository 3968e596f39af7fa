"""Pair attachment references with signed URLs."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from issue_responder.attachments.models import AttachmentReference, MatchedAttachment, ResolvedURL
from issue_responder.tracing import log


class AttachmentMatcher(ABC):
    """Pairs the references of one source text with the signed URLs of the same text.

    Never compare positions across different source texts.
    """

    @abstractmethod
    def match(
        self,
        references: list[AttachmentReference],
        resolved: list[ResolvedURL],
        url_map: Mapping[str, str],
    ) -> list[MatchedAttachment]:
        pass


class OrdinalMatcher(AttachmentMatcher):
    """Pairs by position, assuming the platform renders attachments in markdown order.

    A URL linked more than once counts at its first position only.
    Pairs stop at min(len(references), len(resolved)); trailing references are dropped.
    References already present in `url_map` are skipped without shifting the pairing.
    """

    def match(
        self,
        references: list[AttachmentReference],
        resolved: list[ResolvedURL],
        url_map: Mapping[str, str],
    ) -> list[MatchedAttachment]:
        # Rendered HTML lists each signed URL once, so repeated links collapse to their first occurrence
        first_seen: dict[str, AttachmentReference] = {}
        for reference in references:
            first_seen.setdefault(reference.url, reference)
        references = list(first_seen.values())

        matched = []
        for reference, signed in zip(references, resolved):
            if reference.url in url_map:
                log("·", f"Already downloaded: {reference.url}", dim=True, stage="resolve")
                continue
            matched.append(MatchedAttachment(reference=reference, resolved=signed))

        dropped = len(references) - min(len(references), len(resolved))
        if dropped:
            log("⚠️", f"{dropped} reference(s) have no signed URL, skipping", stage="resolve")
        return matched
