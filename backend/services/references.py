"""
Reference Service
Parses pasted bibliographies and verifies citations against PubMed and Crossref.

Verification tries, in order:
1. PubMed esummary by PMID
2. Crossref by DOI
3. PubMed esearch on the leading title, then esummary of the top hit

A failed lookup is logged and the next strategy is tried.
"""

import re
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from backend.core.config import settings
from backend.schemas.references import (
    ParsedReference,
    PubMedArticle,
    VerificationOutcome,
    VerificationResult,
)

logger = structlog.get_logger(__name__)


PMID_PATTERN = re.compile(r"PMID:?\s*(\d+)", re.IGNORECASE)
DOI_PATTERN = re.compile(r"10\.\d{4,}/[^\s]+")
ENTRY_NUMBER_PATTERN = re.compile(r"^\s*(?:\[\d+\]|\d+[.)])\s+")
MIN_TITLE_SEARCH_LENGTH = 20


# =============================================================================
# Parsing
# =============================================================================


def extract_identifiers(text: str) -> tuple[Optional[str], Optional[str]]:
    """Return ``(pmid, doi)`` found in a citation string."""
    pmid_match = PMID_PATTERN.search(text)
    doi_match = DOI_PATTERN.search(text)
    pmid = pmid_match.group(1) if pmid_match else None
    doi = doi_match.group(0).rstrip(".,;") if doi_match else None
    return pmid, doi


def parse_reference_text(text: str) -> list[ParsedReference]:
    """
    Split a pasted bibliography into entries.

    Blank lines separate entries when present; otherwise each non-empty
    line is an entry. Leading numbering ("1.", "[2]", "3)") is stripped.
    """
    text = text.strip()
    if not text:
        return []

    if re.search(r"\n\s*\n", text):
        chunks = [" ".join(block.split()) for block in re.split(r"\n\s*\n", text)]
    else:
        chunks = text.splitlines()

    entries = []
    for chunk in chunks:
        cleaned = ENTRY_NUMBER_PATTERN.sub("", chunk).strip()
        if not cleaned:
            continue
        pmid, doi = extract_identifiers(cleaned)
        entries.append(ParsedReference(reference_text=cleaned, pmid=pmid, doi=doi))
    return entries


def leading_title(reference_text: str) -> str:
    """Text before the first period, used as a search query."""
    return reference_text.split(".")[0].strip()


def _parse_year(pubdate: Optional[str]) -> Optional[int]:
    if not pubdate:
        return None
    head = pubdate.split(" ")[0]
    return int(head) if head.isdigit() else None


def pubmed_article_to_result(article: dict[str, Any]) -> VerificationResult:
    return VerificationResult(
        title=article.get("title") or "",
        authors=[a.get("name", "") for a in article.get("authors") or []],
        journal=article.get("source") or "",
        year=_parse_year(article.get("pubdate")),
        source="pubmed",
    )


def crossref_work_to_result(work: dict[str, Any]) -> VerificationResult:
    titles = work.get("title") or [""]
    containers = work.get("container-title") or [""]
    date_parts = (work.get("published") or {}).get("date-parts") or [[None]]
    return VerificationResult(
        title=titles[0],
        authors=[
            f"{a.get('given', '')} {a.get('family', '')}".strip()
            for a in work.get("author") or []
        ],
        journal=containers[0],
        year=date_parts[0][0] if date_parts[0] else None,
        citation_count=work.get("is-referenced-by-count") or 0,
        source="crossref",
    )


# =============================================================================
# Lookup Client
# =============================================================================


class ReferenceVerifier:
    """Async client for the NCBI E-utilities and Crossref APIs."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.http_client = http_client
        self._owns_client = http_client is None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.reference_lookup_timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"{settings.app_name}/{settings.app_version} (reference-verifier)",
                },
            )
        return self.http_client

    async def close(self) -> None:
        if self.http_client and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None

    async def __aenter__(self) -> "ReferenceVerifier":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
        before_sleep=lambda retry_state: structlog.get_logger().warning(
            "reference_lookup_retry",
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep,
        ),
    )
    async def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        client = await self._get_http_client()
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def _eutils_params(self, **params: Any) -> dict[str, Any]:
        params["retmode"] = "json"
        if settings.ncbi_api_key:
            params["api_key"] = settings.ncbi_api_key
        return params

    async def pubmed_summary(self, pmids: list[str]) -> dict[str, Any]:
        """esummary records keyed by PMID."""
        data = await self._get_json(
            f"{settings.pubmed_api_url}/esummary.fcgi",
            self._eutils_params(db="pubmed", id=",".join(pmids)),
        )
        return data.get("result") or {}

    async def pubmed_search(self, term: str, retmax: int = 20) -> list[str]:
        """PMIDs matching ``term``."""
        data = await self._get_json(
            f"{settings.pubmed_api_url}/esearch.fcgi",
            self._eutils_params(db="pubmed", term=term, retmax=retmax),
        )
        return (data.get("esearchresult") or {}).get("idlist") or []

    async def lookup_pmid(self, pmid: str) -> Optional[VerificationResult]:
        try:
            records = await self.pubmed_summary([pmid])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("PubMed lookup failed", pmid=pmid, error=str(e))
            return None
        article = records.get(pmid)
        return pubmed_article_to_result(article) if article else None

    async def lookup_doi(self, doi: str) -> Optional[VerificationResult]:
        try:
            data = await self._get_json(f"{settings.crossref_api_url}/{doi}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("DOI lookup failed", doi=doi, error=str(e))
            return None
        if data.get("status") != "ok" or not data.get("message"):
            return None
        return crossref_work_to_result(data["message"])

    async def search_title(self, reference_text: str) -> tuple[Optional[str], Optional[VerificationResult]]:
        """Search PubMed for the citation's leading title; returns ``(pmid, result)``."""
        title = leading_title(reference_text)
        if len(title) <= MIN_TITLE_SEARCH_LENGTH:
            return None, None

        try:
            ids = await self.pubmed_search(title, retmax=1)
            if not ids:
                return None, None
            records = await self.pubmed_summary([ids[0]])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("PubMed search failed", error=str(e))
            return None, None

        article = records.get(ids[0])
        if not article:
            return None, None
        return ids[0], pubmed_article_to_result(article)

    async def verify(
        self,
        reference_text: str,
        pmid: Optional[str] = None,
        doi: Optional[str] = None,
    ) -> VerificationOutcome:
        """Verify one citation, trying each lookup strategy in turn."""
        result = None

        if pmid:
            result = await self.lookup_pmid(pmid)

        if result is None and doi:
            result = await self.lookup_doi(doi)

        if result is None and reference_text:
            found_pmid, result = await self.search_title(reference_text)
            if found_pmid:
                pmid = found_pmid

        status = "verified" if result is not None else "not_found"
        logger.info("Reference verified", status=status, pmid=pmid, doi=doi)
        return VerificationOutcome(status=status, result=result, pmid=pmid, doi=doi)

    async def search(self, query: str, retmax: int = 20) -> list[PubMedArticle]:
        """Search PubMed and return summarized articles in result order."""
        ids = await self.pubmed_search(query, retmax=retmax)
        if not ids:
            return []

        records = await self.pubmed_summary(ids)
        articles = []
        for pmid in ids:
            article = records.get(pmid)
            if not article:
                continue
            elocation = article.get("elocationid") or ""
            articles.append(
                PubMedArticle(
                    pmid=pmid,
                    title=article.get("title") or "",
                    authors=", ".join(a.get("name", "") for a in article.get("authors") or []),
                    journal=article.get("source") or "",
                    year=_parse_year(article.get("pubdate")),
                    doi=elocation.replace("doi: ", "") or None,
                )
            )
        return articles
