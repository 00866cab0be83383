import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from app.services.pdf_text_extractor import DocumentRecord

logger = logging.getLogger(__name__)

SECTION_CONTEXT_LINES = 10  # matched line + 9 following
KEYWORD_CONTEXT_RADIUS = 2


class SectionCategory(Enum):
    CONTACT = "contact"
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    LANGUAGES = "languages"


SECTION_KEYWORDS: Dict[SectionCategory, Tuple[str, ...]] = {
    SectionCategory.CONTACT: ("email", "phone", "address", "linkedin", "github", "portfolio"),
    SectionCategory.SUMMARY: ("summary", "objective", "profile", "about"),
    SectionCategory.EXPERIENCE: ("experience", "work history", "employment", "career"),
    SectionCategory.EDUCATION: ("education", "degree", "university", "college", "school"),
    SectionCategory.SKILLS: ("skills", "technologies", "tools", "programming", "languages"),
    SectionCategory.PROJECTS: ("projects", "portfolio", "achievements", "accomplishments"),
    SectionCategory.CERTIFICATIONS: ("certifications", "certificates", "awards", "honors"),
    SectionCategory.LANGUAGES: ("languages", "fluent", "proficient", "native"),
}


@dataclass(frozen=True)
class SectionMatch:
    page: int
    line: int  # 1-based within the page
    header: str
    context: str


def extract_resume_sections(
    document: DocumentRecord,
) -> Dict[SectionCategory, List[SectionMatch]]:
    """Keyword-match every page line against the fixed resume categories.

    Every category is present in the result, possibly with no matches. A single
    line is recorded under each category it matches.
    """
    sections: Dict[SectionCategory, List[SectionMatch]] = {c: [] for c in SectionCategory}

    for page in document.pages:
        lines = page.text.split("\n")
        for index, line in enumerate(lines):
            lower = line.lower()
            for category in SectionCategory:
                if any(keyword in lower for keyword in SECTION_KEYWORDS[category]):
                    context = "\n".join(lines[index:index + SECTION_CONTEXT_LINES])
                    sections[category].append(SectionMatch(
                        page=page.page_num,
                        line=index + 1,
                        header=line.strip(),
                        context=context.strip(),
                    ))

    total = sum(len(m) for m in sections.values())
    logger.info(f"[SECTIONS] {total} section matches across {len(document.pages)} pages")
    return sections


def extract_sections_by_keywords(
    document: DocumentRecord, keywords: Iterable[str],
) -> Dict[str, List[SectionMatch]]:
    """Free-form keyword lookup with two lines of context on either side."""
    results: Dict[str, List[SectionMatch]] = {}
    for keyword in keywords:
        needle = keyword.lower()
        matches: List[SectionMatch] = []
        if needle:
            for page in document.pages:
                lines = page.text.split("\n")
                for index, line in enumerate(lines):
                    if needle in line.lower():
                        start = max(0, index - KEYWORD_CONTEXT_RADIUS)
                        end = min(len(lines), index + KEYWORD_CONTEXT_RADIUS + 1)
                        matches.append(SectionMatch(
                            page=page.page_num,
                            line=index + 1,
                            header=line.strip(),
                            context="\n".join(lines[start:end]).strip(),
                        ))
        results[keyword] = matches
    return results
