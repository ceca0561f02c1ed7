"""Slug uniqueness resolution - collision detection, suffixing and reclamation."""
import re
from dataclasses import dataclass, field
from typing import Pattern

from loguru import logger
from pymongo.errors import PyMongoError

from docslug.errors import ReclamationError
from docslug.models.document_type import DocumentType
from docslug.models.slug_options import SLUGS_FIELD
from docslug.services.scope_resolver import ResolvedScope


@dataclass
class Conflicts:
    """Existing slugs in scope that match a candidate or its numbered variants."""

    # Current (last) slugs of siblings
    active: list[str] = field(default_factory=list)
    # Earlier history entries of siblings
    stale: list[str] = field(default_factory=list)
    # Everything that blocks the candidate
    existing: list[str] = field(default_factory=list)
    stale_by_doc: list[tuple[dict, list[str]]] = field(default_factory=list)


def slug_pattern(token: str) -> Pattern:
    """
    Regular expression matching token, token-1, ... token-n.

    Anchored on both ends so longer slugs sharing the prefix never match.
    """
    return re.compile(rf"^{re.escape(token)}(?:-(\d+))?$")


def collect_conflicts(docs: list[dict], pattern: Pattern) -> Conflicts:
    """Partition the matching slugs of sibling documents into active and stale."""
    conflicts = Conflicts()
    for doc in docs:
        slugs = doc.get(SLUGS_FIELD) or []
        if not slugs:
            continue

        conflicts.existing.extend(s for s in slugs if pattern.fullmatch(s))
        if pattern.fullmatch(slugs[-1]):
            conflicts.active.append(slugs[-1])

        stale = [s for s in slugs[:-1] if pattern.fullmatch(s)]
        if stale:
            conflicts.stale.extend(stale)
            conflicts.stale_by_doc.append((doc, stale))
    return conflicts


def suffix_number(slug: str, pattern: Pattern) -> int:
    """Numeric suffix of a slug; -1 when the slug is the bare token."""
    match = pattern.fullmatch(slug)
    if match is None or match.group(1) is None:
        return -1
    return int(match.group(1))


def next_slug(token: str, existing: list[str]) -> str:
    """
    Append a suffix one greater than the highest already in use.

    Gaps are never reused: with token-1 and token-5 taken the result is
    token-6.

    Suffixes are only read relative to token, so a token that already ends
    in digits starts its own series: "foo-2" colliding with itself becomes
    "foo-2-1", not "foo-2-3" as it would if the trailing digits of the last
    conflict were reused.
    """
    pattern = slug_pattern(token)
    highest = max((suffix_number(s, pattern) for s in existing), default=-1)
    return f"{token}-{max(highest, 0) + 1}"


def is_reserved(token: str, reserved_words) -> bool:
    """Check token against reserved strings (exact) and patterns (search)."""
    for word in reserved_words:
        if isinstance(word, str):
            if word == token:
                return True
        elif word.search(token):
            return True
    return False


async def reclaim_stale_slugs(conflicts: Conflicts, siblings, client=None) -> None:
    """
    Remove stale history entries from siblings so the candidate is free.

    With a client the sibling writes share one transaction; otherwise each
    write stands alone and a failure leaves earlier writes in place.

    Raises:
        ReclamationError: If a sibling could not be saved or the
            transaction could not be committed
    """
    async def _write(session=None):
        for sibling, stale in conflicts.stale_by_doc:
            remaining = [s for s in sibling.get(SLUGS_FIELD) or [] if s not in stale]
            try:
                await siblings.save_slugs(sibling, remaining, session=session)
            except PyMongoError as e:
                raise ReclamationError(sibling.get("_id"), e) from e
            logger.info("Released stale slugs {} from document {}", stale, sibling.get("_id"))

    if client is None:
        await _write()
        return

    try:
        async with await client.start_session() as session:
            async with session.start_transaction():
                await _write(session)
    except PyMongoError as e:
        sibling_ids = [sibling.get("_id") for sibling, _ in conflicts.stale_by_doc]
        raise ReclamationError(sibling_ids, e) from e


async def find_unique_slug(
    token: str,
    doc: dict,
    doc_type: DocumentType,
    scope: ResolvedScope,
    client=None,
) -> str:
    """
    Find a slug based on token that is unique within the document's scope.

    Returns token unchanged when nothing in scope holds it. When the only
    holders are stale history entries (and a scope is configured), those
    entries are released and token is returned. Otherwise token gets a
    numeric suffix.

    Args:
        token: Normalized candidate token
        doc: Document being slugged
        doc_type: Registered type of the document
        scope: Resolved uniqueness scope
        client: Motor client to run reclamation in a transaction, if any

    Returns:
        Unique slug
    """
    pattern = slug_pattern(token)

    docs = await scope.siblings.find_matching(
        pattern,
        exclude_id=doc.get("_id"),
        extra_filter=scope.filter or None,
    )
    conflicts = collect_conflicts(docs, pattern)

    # A slug that reads as an identifier would shadow lookups by id
    classifier = doc_type.classifier
    blocked = classifier.slug_can_be_ambiguous() and classifier.looks_like_id(token)
    blocked = blocked or is_reserved(token, doc_type.reserved_words)
    if blocked:
        conflicts.existing.append(token)

    if token not in conflicts.existing:
        logger.debug("Slug {} is free for {}", token, doc_type.name)
        return token

    # Only stale history holds the token: transfer it to this document
    if doc_type.has_scope and not blocked and not conflicts.active and conflicts.stale:
        await reclaim_stale_slugs(conflicts, scope.siblings, client)
        return token

    slug = next_slug(token, conflicts.existing)
    logger.debug("Slug {} taken for {}; using {}", token, doc_type.name, slug)
    return slug
