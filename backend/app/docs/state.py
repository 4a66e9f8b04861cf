"""Document state resolver - which artifact is authoritative."""

from dataclasses import dataclass

from backend.app.db.repositories import DocumentRecord, SignatureRecord
from backend.app.docs.locator import Locator
from backend.app.models.documents import ArtifactKind, DocumentStatus

MISSING_SIGNATURE = "signature_missing"
MISSING_SIGNED_PATH = "signed_path_missing"
SIGNED_ARTIFACT_UNREACHABLE = "signed_artifact_unreachable"


@dataclass(frozen=True)
class ResolvedArtifact:
    """Artifact chosen for retrieval.

    integrity_issue is set when the document claims to be signed but no
    signed locator exists; the original is served instead.
    """

    locator: Locator
    is_signed: bool
    integrity_issue: str | None = None

    @property
    def artifact(self) -> ArtifactKind:
        return ArtifactKind.signed if self.is_signed else ArtifactKind.original


def resolve_artifact(doc: DocumentRecord, sig: SignatureRecord | None) -> ResolvedArtifact:
    """Pick the signed artifact when it exists, otherwise the original.

    A pending document always resolves to its original, even if a stray
    signature row exists.
    """
    if doc.status == DocumentStatus.signed:
        if sig is not None and sig.signed_locator is not None:
            return ResolvedArtifact(locator=sig.signed_locator, is_signed=True)

        issue = MISSING_SIGNATURE if sig is None else MISSING_SIGNED_PATH
        return ResolvedArtifact(
            locator=doc.original_locator, is_signed=False, integrity_issue=issue
        )

    return ResolvedArtifact(locator=doc.original_locator, is_signed=False)
