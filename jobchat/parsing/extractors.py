"""
Job-listing extraction strategies.

The agent has been observed to list jobs in several ad-hoc layouts. Each
layout gets one strategy class with a cheap `detect(text)` test and an
`extract(text)` that turns the text into JobRecords. The dispatcher walks
the strategies in priority order and keeps the first non-empty result.

Layouts, most specific first:

    1. Software Developer at NetDirector in Tampa, FL          (simple numbered)
    - Android Developer at Acme in Austin. Responsibilities include ... [AD12]
    1. Software Developer at NetDirector                        (labeled bullets)
       - Location: Tampa, FL
    Job Title: ... / Company: ... / Location: ... / Description: ...
    1. **Software Developer** at NetDirector in Tampa, FL.      (markdown bold)
    Applied AI Researcher at Articul8 AI                        (paragraphs)
    Location: Remote
    [Data Analyst](https://www.linkedin.com/jobs/view/123)      (links)
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from jobchat.core.schemas import JobRecord

logger = logging.getLogger(__name__)


# ============================================================================
# Shared Patterns & Helpers
# ============================================================================

MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://[^\s)]+)\)")
BARE_URL_RE = re.compile(r"https?://[^\s)\]>]+")
SALARY_LABEL_RE = re.compile(r"(?:Salary|Compensation)\s*:?\s*([^\n.]+)", re.IGNORECASE)
SALARY_RANGE_RE = re.compile(r"\$[\d,]+(?:\.\d+)?\s*-\s*\$[\d,]+(?:\.\d+)?")
SALARY_AMOUNT_RE = re.compile(r"\$[\d,]+(?:\.\d+)?")
JOB_TYPE_LABEL_RE = re.compile(r"\b(?:Job\s+|Employment\s+)?(?:Type|Schedule)\s*:\s*([^\n.]+)", re.IGNORECASE)
LABELED_BULLET_RE = re.compile(
    r"^\s*[-*•]\s*(?:\*\*)?(?:Company|Location|Description|Salary(?: Range)?)(?:\*\*)?\s*:",
    re.IGNORECASE | re.MULTILINE,
)
NUMBERED_HEADER_RE = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)


def clean(value: Optional[str]) -> str:
    """Strip whitespace, bold markers and trailing punctuation."""
    if not value:
        return ""
    value = value.replace("**", "").strip()
    value = value.strip("\"'`").strip()
    return value.rstrip(".,;:").strip()


def is_remote(*values: Optional[str]) -> bool:
    """True when any value mentions remote work."""
    return any(value and "remote" in value.lower() for value in values)


def dedupe(jobs: List[JobRecord], with_location: bool = False) -> List[JobRecord]:
    """Drop repeated records, keeping the first occurrence."""
    seen = set()
    unique = []
    for job in jobs:
        key = job.dedupe_key(with_location=with_location)
        if key in seen:
            continue
        seen.add(key)
        unique.append(job)
    return unique


def find_salary(text: str) -> Optional[str]:
    """Labeled salary first, then a dollar range, then a single amount."""
    match = SALARY_LABEL_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    match = SALARY_RANGE_RE.search(text) or SALARY_AMOUNT_RE.search(text)
    if match:
        return match.group(0).strip()
    return None


def find_job_type(text: str) -> Optional[str]:
    match = JOB_TYPE_LABEL_RE.search(text)
    return match.group(1).strip() if match else None


# ============================================================================
# Strategy Base
# ============================================================================

class JobExtractor:
    """One listing layout: a detector plus an extractor."""

    name = "base"

    def detect(self, text: str) -> bool:
        return True

    def extract(self, text: str) -> List[JobRecord]:
        raise NotImplementedError


# ============================================================================
# 1. Simple numbered lines: "1. Title at Company in Location"
# ============================================================================

class SimpleNumberedExtractor(JobExtractor):
    """Plain numbered "Title at Company [in Location]" lines."""

    name = "simple_numbered"

    LINE_RE = re.compile(r"^\d+\.\s+(.+?)\s+at\s+(.+?)(?:\s+in\s+(.+))?$")
    REJECT_PHRASES = ("work from home", "skip the commute")

    def detect(self, text: str) -> bool:
        # Numbered headers followed by "- Company:" style bullets belong
        # to the labeled-bullet layout
        if LABELED_BULLET_RE.search(text):
            return False
        return any(self._accepts(line) for line in text.splitlines())

    def _accepts(self, line: str) -> bool:
        line = line.strip()
        if "**" in line or "$" in line:
            return False
        lowered = line.lower()
        if any(phrase in lowered for phrase in self.REJECT_PHRASES):
            return False
        return bool(self.LINE_RE.match(line))

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        for line in text.splitlines():
            line = line.strip()
            if not self._accepts(line):
                continue

            title, company, location = self.LINE_RE.match(line).groups()
            if location is None and " in " in company:
                company, location = company.split(" in ", 1)

            jobs.append(JobRecord(
                title=clean(title),
                company=clean(company),
                location=clean(location),
                job_type="Full-time",
            ))

        return dedupe(jobs, with_location=True)


# ============================================================================
# 2. Dash format: "- Title at Company in Location. Responsibilities include X. [CODE]"
# ============================================================================

class DashFormatExtractor(JobExtractor):
    """Dash bullets ending in a bracketed job code."""

    name = "dash_format"

    JOB_RE = re.compile(
        r"^\s*-\s+(?P<title>.+?)\s+"
        r"(?:at\s+(?P<company>.+?)(?:\s+in\s+(?P<location>.+?))?|in\s+(?P<location_only>.+?))"
        r"\.\s+Responsibilities include\s+(?P<description>.+?)\.?\s*\[(?P<code>[^\]]+)\]",
        re.IGNORECASE | re.MULTILINE,
    )
    UNDISCLOSED = "an undisclosed location"

    def detect(self, text: str) -> bool:
        return "responsibilities include" in text.lower() and "[" in text

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        for match in self.JOB_RE.finditer(text):
            company = clean(match.group("company"))
            location = clean(match.group("location") or match.group("location_only"))

            if self.UNDISCLOSED in (company.lower(), location.lower()):
                company = "Undisclosed"
                location = "Undisclosed"

            jobs.append(JobRecord(
                title=clean(match.group("title")),
                company=company,
                location=location,
                description=match.group("description").strip(),
                apply_url=f"#{match.group('code').strip()}",
                job_type="Full-time",
                salary="",
            ))

        return dedupe(jobs, with_location=True)


# ============================================================================
# 3. Labeled bullets under numbered headers
# ============================================================================

class LabeledBulletExtractor(JobExtractor):
    """
    Numbered headers with "- Company:" / "- Location:" / "- Salary:" bullets.

    1. Software Developer at NetDirector in Tampa, FL.
       - Location: Tampa, FL
       - Salary Range: $60,000-$80,000
       - [Apply](https://...)
    """

    name = "labeled_bullet"

    SKIP_HEADER_PHRASES = ("here are", "job postings", "eligible to hire")
    HEADER_AT_RE = re.compile(r"^(.+?)\s+at\s+(.+?)(?:\s+in\s+(.+?))?\.?$")
    HEADER_DASH_RE = re.compile(r"^(.+?)\s+[-–—|]\s+(.+)$")
    FIELD_LABELS: Dict[str, str] = {
        "company": r"Company|Employer",
        "location": r"Location",
        "description": r"Description|Responsibilities|Summary",
        "salary": r"Salary(?: Range)?|Compensation|Pay",
        "job_type": r"(?:Job |Employment )?Type",
        "posted_at": r"(?:Date )?Posted(?: Date)?",
        "experience_level": r"Experience(?: Level)?",
        "sector": r"Sector|Industry",
        "source": r"Source",
    }

    def detect(self, text: str) -> bool:
        return bool(LABELED_BULLET_RE.search(text) and NUMBERED_HEADER_RE.search(text))

    def _field(self, section: str, labels: str) -> Optional[str]:
        pattern = rf"^\s*[-*•]\s*(?:\*\*)?(?:{labels})(?:\*\*)?\s*:\s*(.+?)\s*$"
        match = re.search(pattern, section, re.IGNORECASE | re.MULTILINE)
        if not match:
            return None
        return clean(match.group(1)) or None

    def _parse_header(self, header: str) -> Tuple[str, str, str]:
        header = clean(NUMBERED_HEADER_RE.sub("", header, count=1))
        # A header that is itself a markdown link
        link = MARKDOWN_LINK_RE.fullmatch(header)
        if link:
            header = clean(link.group(1))

        match = self.HEADER_AT_RE.match(header)
        if match:
            title, company, location = match.groups()
            return clean(title), clean(company), clean(location)

        match = self.HEADER_DASH_RE.match(header)
        if match:
            return clean(match.group(1)), clean(match.group(2)), ""

        return header, "", ""

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        sections = re.split(r"(?m)^(?=[ \t]*\d+\.\s)", text)

        for section in sections:
            if not NUMBERED_HEADER_RE.match(section):
                continue

            header = section.strip().splitlines()[0]
            if any(phrase in header.lower() for phrase in self.SKIP_HEADER_PHRASES):
                logger.debug(f"Skipping non-job section: {header[:60]}")
                continue

            title, company, location = self._parse_header(header)
            fields = {
                key: self._field(section, labels)
                for key, labels in self.FIELD_LABELS.items()
            }

            link = MARKDOWN_LINK_RE.search(section)
            bare_url = BARE_URL_RE.search(section)
            apply_url = link.group(2) if link else (bare_url.group(0) if bare_url else "")

            jobs.append(JobRecord(
                title=title,
                company=fields["company"] or company,
                location=fields["location"] or location,
                description=fields["description"] or "",
                salary=fields["salary"],
                job_type=fields["job_type"] or "Full-time",
                apply_url=apply_url,
                posted_at=fields["posted_at"],
                experience_level=fields["experience_level"],
                sector=fields["sector"],
                source=fields["source"],
            ))

        return dedupe(jobs, with_location=True)


# ============================================================================
# 4. Field blocks: "Job Title: ... Company: ... Location: ... Description: ..."
# ============================================================================

class FieldBlockExtractor(JobExtractor):
    """Blocks introduced by a "Job Title:" line."""

    name = "field_block"

    BLOCK_START_RE = re.compile(r"^\s*(?:[-*]\s*)?(?:\*\*)?Job Title(?:\*\*)?\s*:", re.IGNORECASE | re.MULTILINE)
    DESCRIPTION_RE = re.compile(r"^\s*(?:[-*]\s*)?(?:\*\*)?Description(?:\*\*)?\s*:\s*([\s\S]*)", re.IGNORECASE | re.MULTILINE)

    def detect(self, text: str) -> bool:
        return bool(self.BLOCK_START_RE.search(text))

    def _field(self, block: str, label: str) -> str:
        pattern = rf"^\s*(?:[-*]\s*)?(?:\*\*)?{label}(?:\*\*)?\s*:\s*(.*?)\s*$"
        match = re.search(pattern, block, re.IGNORECASE | re.MULTILINE)
        return clean(match.group(1)) if match else ""

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        starts = [m.start() for m in self.BLOCK_START_RE.finditer(text)]

        for i, start in enumerate(starts):
            end = starts[i + 1] if i + 1 < len(starts) else len(text)
            block = text[start:end].strip()

            title = self._field(block, r"Job Title")
            if not title:
                continue

            description = ""
            match = self.DESCRIPTION_RE.search(block)
            if match:
                description = match.group(1).strip()

            link = MARKDOWN_LINK_RE.search(block)
            jobs.append(JobRecord(
                title=title,
                company=self._field(block, r"Company"),
                location=self._field(block, r"Location"),
                description=description,
                salary=self._field(block, r"Salary(?: Range)?") or None,
                job_type=self._field(block, r"(?:Job |Employment )?Type"),
                apply_url=link.group(2) if link else self._field(block, r"Apply(?: URL| Link)?"),
            ))

        return dedupe(jobs)


# ============================================================================
# 5. Markdown bold numbered blocks: "1. **Title** at Company in Location."
# ============================================================================

class MarkdownBoldExtractor(JobExtractor):
    """Numbered blocks whose title is wrapped in `**`."""

    name = "markdown_bold"

    DETECT_RE = re.compile(r"\d+\.\s+\*\*")
    STANDARD_RE = re.compile(
        r"(\d+)\.\s+\*\*(.*?)\*\*\s+(?:at|in)\s+(.*?)\s+(?:in|at)\s+([^.\n]+)\.([\s\S]*?)(?=\d+\.\s+\*\*|\Z)"
    )
    FALLBACK_RE = re.compile(r"(\d+)\.\s+\*\*(.*?)\*\*([\s\S]*?)(?=\d+\.\s+\*\*|\Z)")
    RESPONSIBILITIES_RE = re.compile(r"(?:Responsibilities|Requirements)\s*:?\s*([^\n.]+)", re.IGNORECASE)
    COMPANY_LABEL_RE = re.compile(r"\bcompany\s*:\s*([^\n]+)", re.IGNORECASE)
    COMPANY_AT_RE = re.compile(r"\bat\s+([^\n.]+)", re.IGNORECASE)
    LOCATION_LABEL_RE = re.compile(r"\blocation\s*:\s*([^\n]+)", re.IGNORECASE)
    LOCATION_IN_RE = re.compile(r"\bin\s+([^\n.]+)", re.IGNORECASE)
    DESCRIPTION_LABEL_RE = re.compile(r"\bdescription\s*:\s*([^\n]+)", re.IGNORECASE)

    def detect(self, text: str) -> bool:
        return bool(self.DETECT_RE.search(text))

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        for match in self.STANDARD_RE.finditer(text):
            index, title, company, location, details = match.groups()
            jobs.append(self._parse_details(int(index), title, company, location, details))

        if not jobs:
            for match in self.FALLBACK_RE.finditer(text):
                index, title, details = match.groups()
                jobs.append(self._parse_details_advanced(int(index), title, details))

        return dedupe(jobs)

    def _details_remote(self, details: str) -> bool:
        return is_remote(details) or "anywhere" in details.lower()

    def _parse_details(self, index: int, title: str, company: str,
                       location: str, details: str) -> JobRecord:
        """Strict form: title, company and location are in the header."""
        title = clean(title) or f"Job {index}"
        company = clean(company)
        details = details or ""

        match = self.RESPONSIBILITIES_RE.search(details)
        if match:
            description = match.group(1).strip()[:200] + "..."
        else:
            first_sentence = re.sub(r"^[\s\-*•]+", "", details.split(".")[0]).strip()
            if len(first_sentence) > 10:
                description = first_sentence + "."
            else:
                description = f"Position: {title} at {company}"

        return JobRecord(
            title=title,
            company=company,
            location=clean(location),
            description=description,
            salary=find_salary(details),
            job_type=find_job_type(details) or "Full-time",
            apply_url=self._apply_url(details),
            remote=self._details_remote(details),
        )

    def _parse_details_advanced(self, index: int, title: str, details: str) -> JobRecord:
        """Loose form: everything but the title is scraped from the block."""
        title = clean(title)
        company = ""
        location = ""

        # "**Nurse at Mercy Health in Detroit**"
        if " at " in title:
            title, company = [part.strip() for part in title.split(" at ", 1)]
            if " in " in company:
                company, location = [part.strip() for part in company.split(" in ", 1)]

        title = title or f"Job {index}"

        if not company:
            match = self.COMPANY_LABEL_RE.search(details) or self.COMPANY_AT_RE.search(details)
            company = clean(match.group(1)) if match else ""

        if not location:
            match = self.LOCATION_LABEL_RE.search(details) or self.LOCATION_IN_RE.search(details)
            location = clean(match.group(1)) if match else ""

        match = self.DESCRIPTION_LABEL_RE.search(details)
        description = match.group(1).strip() if match else f"Position: {title}"

        return JobRecord(
            title=title,
            company=company,
            location=location,
            description=description,
            salary=find_salary(details),
            job_type=find_job_type(details) or "Full-time",
            apply_url=self._apply_url(details),
            remote=self._details_remote(details),
        )

    def _apply_url(self, details: str) -> str:
        link = MARKDOWN_LINK_RE.search(details)
        return link.group(2) if link else ""


# ============================================================================
# 6. Paragraphs: "Title at Company" followed by labeled lines
# ============================================================================

class TitleAtCompanyExtractor(JobExtractor):
    """
    Blank-line separated paragraphs such as:

        Applied AI Researcher (USA) at Articul8 AI
        Location: Remote
        Salary: $150,000
        Job Description: ...
    """

    name = "title_at_company"

    FIRST_LINE_RE = re.compile(r"^(.+?)\s+at\s+(.+)$")
    INTRO_PREFIXES = ("here are", "here is", "i found", "i have found")
    LABEL_PREFIXES = ("location:", "salary:", "compensation:", "job description:", "source:")
    MAX_TITLE_LINE = 150
    MAX_DESCRIPTION = 200

    def _blocks(self, text: str) -> List[List[str]]:
        blocks = []
        for block in re.split(r"\n\s*\n", text):
            lines = [line.strip() for line in block.splitlines() if line.strip()]
            if len(lines) >= 2:
                blocks.append(lines)
        return blocks

    def _title_line(self, lines: List[str]):
        line = lines[0].strip()
        if len(line) > self.MAX_TITLE_LINE or line.endswith((":", "?", "!")):
            return None
        line = clean(line)
        if line.lower().startswith(self.INTRO_PREFIXES):
            return None
        # Prose paragraphs rarely carry a "Location:" or "Salary:" line
        if not any(rest.lower().startswith(self.LABEL_PREFIXES) or "$" in rest for rest in lines[1:]):
            return None
        return self.FIRST_LINE_RE.match(line)

    def detect(self, text: str) -> bool:
        return any(self._title_line(lines) for lines in self._blocks(text))

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        for lines in self._blocks(text):
            match = self._title_line(lines)
            if not match:
                continue

            job = {
                "title": clean(match.group(1)),
                "company": clean(match.group(2)),
                "location": "",
                "description": "",
                "salary": None,
                "apply_url": "",
            }

            for line in lines[1:]:
                lowered = line.lower()
                if lowered.startswith("location:"):
                    job["location"] = re.sub(r"^location:\s*", "", line, flags=re.IGNORECASE).strip()
                elif lowered.startswith(("salary:", "compensation:")) or "$" in line:
                    job["salary"] = re.sub(r"^(?:salary|compensation):\s*", "", line, flags=re.IGNORECASE).strip()
                elif lowered.startswith("job description:"):
                    job["description"] = re.sub(r"^job description:\s*", "", line, flags=re.IGNORECASE).strip()
                elif lowered.startswith("source:"):
                    link = MARKDOWN_LINK_RE.search(line)
                    url = BARE_URL_RE.search(line)
                    if link:
                        job["apply_url"] = link.group(2)
                    elif url:
                        job["apply_url"] = url.group(0)
                elif len(job["description"]) < self.MAX_DESCRIPTION:
                    job["description"] = f"{job['description']} {line}".strip()

            jobs.append(JobRecord(**job))

        return dedupe(jobs)


# ============================================================================
# 7. Last resort: bare markdown links
# ============================================================================

class LinkFallbackExtractor(JobExtractor):
    """Any `[Label](url)` pair, with the company guessed from the domain."""

    name = "link_fallback"

    DOMAIN_COMPANIES = (
        ("tietalent.com", "TieTalent"),
        ("linkedin.com", "LinkedIn"),
        ("indeed.com", "Indeed"),
        ("glassdoor.com", "Glassdoor"),
        ("ziprecruiter.com", "ZipRecruiter"),
        ("monster.com", "Monster"),
        ("dice.com", "Dice"),
        ("greenhouse.io", "Greenhouse"),
        ("lever.co", "Lever"),
    )
    JOB_TYPE_HINTS = (
        ("part-time", "Part-time"),
        ("contract", "Contract"),
        ("temporary", "Temporary"),
    )
    WINDOW = 50

    def detect(self, text: str) -> bool:
        return bool(MARKDOWN_LINK_RE.search(text))

    def company_for(self, url: str) -> Optional[str]:
        lowered = url.lower()
        for domain, company in self.DOMAIN_COMPANIES:
            if domain in lowered:
                return company
        return None

    def _job_type(self, text: str, start: int, end: int) -> str:
        window = text[max(0, start - self.WINDOW):end + self.WINDOW].lower()
        for hint, job_type in self.JOB_TYPE_HINTS:
            if hint in window:
                return job_type
        return "Full-time"

    def extract(self, text: str) -> List[JobRecord]:
        jobs = []
        for match in MARKDOWN_LINK_RE.finditer(text):
            label, url = match.group(1).strip(), match.group(2).strip()
            if label.lower() == "apply here" or len(label) < 3:
                continue
            if "update_dashboard" in label.lower():
                continue

            company = self.company_for(url)
            jobs.append(JobRecord(
                title=clean(label),
                company=company or "",
                apply_url=url,
                job_type=self._job_type(text, match.start(), match.end()),
                source=company,
            ))

        return dedupe(jobs)
