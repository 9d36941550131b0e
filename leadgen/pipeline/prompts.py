"""
Prompt construction for the enrichment inference call.
"""
from leadgen.config import OUTREACH_SENDER, OUTREACH_OFFERING
from leadgen.pipeline.extractor import PageDigest

RESPONSE_SHAPE = """{
  "company_name": "Official company name",
  "tech_stack": ["Tool1", "Tool2"],
  "opportunities": ["Opportunity 1", "Opportunity 2"],
  "email_draft": "Subject: ...\\n\\nBody: ...",
  "research_notes": "Which external mentions you used, or empty"
}"""


def build_enrichment_prompt(url: str, digest: PageDigest, research_context: str = '',
                            sender: str = OUTREACH_SENDER, offering: str = OUTREACH_OFFERING) -> str:
    """Embed the page digest (and research context, when present) in the analyst prompt."""
    sections = [
        f"You are an expert Sales Engineer for {sender}.",
        f"{sender} offers: {offering}.",
        "",
        "Analyze this website context:",
        f"URL: {url}",
        f"Title: {digest.title}",
        f"Description: {digest.meta_description or 'Not provided'}",
        f"Headers: {digest.headings or 'Not provided'}",
    ]
    if digest.tech_hints:
        sections.append(f"Detected technologies: {', '.join(digest.tech_hints)}")
    if digest.social_links:
        sections.append(f"Social profiles: {', '.join(digest.social_links)}")
    sections.append(f"Content Snippet: {digest.body_text or 'Website content unavailable'}")
    if digest.is_empty:
        sections.append("Note: the page could not be read. Work from the URL and title only, "
                        "and do not invent facts about the company.")

    if research_context:
        sections += [
            "",
            "Recent public mentions (news, projects, achievements, social presence):",
            research_context,
        ]

    sections += [
        "",
        "Task:",
        "1. Identify the company name.",
        "2. Identify the tech stack.",
        f"3. Identify 2-3 concrete opportunities for {sender} services.",
        "4. Draft a short, personalized cold email (Subject + Body) in the website's language."
        + (" Reference one recent mention if it is relevant." if research_context else ""),
        "",
        "Return ONLY valid JSON with this shape:",
        RESPONSE_SHAPE,
    ]
    return '\n'.join(sections)
