"""
HTML → PageDigest. Pure function of its input; never raises.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List

from bs4 import BeautifulSoup

from leadgen.config import BODY_TEXT_LIMIT

logger = logging.getLogger('pipeline.extractor')


SOCIAL_PATTERNS: Dict[str, str] = {
    'linkedin':  r'linkedin\.com/(?:company|school|showcase|in)/[a-zA-Z0-9\-_%.]+',
    'facebook':  r'facebook\.com/(?!sharer|share|dialog|plugins|groups/)[a-zA-Z0-9.\-]+',
    'instagram': r'instagram\.com/(?!p/|reel/|explore/)[a-zA-Z0-9._]+',
    'twitter':   r'[/.](?:twitter|x)\.com/(?!intent/|share|home)[a-zA-Z0-9_]+',
    'youtube':   r'youtube\.com/(?:c/|channel/|user/|@)[a-zA-Z0-9_\-]+',
    'tiktok':    r'tiktok\.com/@[a-zA-Z0-9._]+',
}

# Signature substring (lowercased HTML) → technology name
TECH_SIGNATURES: Dict[str, str] = {
    'wp-content': 'WordPress',
    'wp-includes': 'WordPress',
    'cdn.shopify.com': 'Shopify',
    'static.wixstatic.com': 'Wix',
    'squarespace.com': 'Squarespace',
    'webflow.com': 'Webflow',
    'data-reactroot': 'React',
    '__next_data__': 'Next.js',
    'ng-version': 'Angular',
    'data-v-app': 'Vue.js',
    'elementor': 'Elementor',
    'woocommerce': 'WooCommerce',
    'googletagmanager.com': 'Google Tag Manager',
    'google-analytics.com': 'Google Analytics',
    'connect.facebook.net': 'Meta Pixel',
    'hs-scripts.com': 'HubSpot',
    'js.hsforms.net': 'HubSpot',
    'wa.me/': 'WhatsApp',
    'api.whatsapp.com': 'WhatsApp',
}

_INVISIBLE_TAGS = ['script', 'style', 'noscript', 'template', 'svg']
_WHITESPACE = re.compile(r'\s+')


@dataclass
class PageDigest:
    """Bounded summary of a page, ready for prompt construction."""
    title: str
    meta_description: str = ''
    headings: str = ''
    body_text: str = ''
    social_links: List[str] = field(default_factory=list)
    tech_hints: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.meta_description or self.headings or self.body_text)


def _clean(text: str) -> str:
    return _WHITESPACE.sub(' ', text or '').strip()


def find_social_links(soup) -> List[str]:
    """Outbound hrefs that point at a known social-platform profile/page."""
    found = set()
    for a in soup.find_all('a', href=True):
        href = a['href'].strip()
        if not href.lower().startswith(('http://', 'https://', '//')):
            continue
        for pattern in SOCIAL_PATTERNS.values():
            if re.search(pattern, href, re.I):
                found.add(href.split('?')[0].split('#')[0].rstrip('/'))
                break
    return sorted(found)


def detect_tech(html: str, soup) -> List[str]:
    """Technology names from generator meta + known HTML signatures."""
    hits = []
    generator = soup.find('meta', attrs={'name': re.compile(r'^generator$', re.I)})
    if generator and generator.get('content'):
        # "WordPress 6.4.2" → "WordPress"
        name = _clean(generator['content']).split(' ')[0]
        if name:
            hits.append(name)

    lowered = html.lower()
    for signature, tech in TECH_SIGNATURES.items():
        if signature in lowered and tech not in hits:
            hits.append(tech)
    return hits


def extract_digest(html: str, url: str, body_limit: int = BODY_TEXT_LIMIT) -> PageDigest:
    """
    Parse HTML into a PageDigest.

    Empty or malformed HTML yields title=url and empty text fields.
    """
    if not html or not html.strip():
        return PageDigest(title=url)

    soup = BeautifulSoup(html, 'html.parser')

    title = _clean(soup.title.get_text()) if soup.title else ''

    meta = soup.find('meta', attrs={'name': re.compile(r'^description$', re.I)})
    if not meta:
        meta = soup.find('meta', attrs={'property': 'og:description'})
    meta_description = _clean(meta.get('content', '')) if meta else ''

    headings = '; '.join(
        t for t in (_clean(h.get_text(' ')) for h in soup.find_all('h1')) if t
    )

    tech_hints = detect_tech(html, soup)
    social_links = find_social_links(soup)

    root = soup.body or soup
    for tag in root.find_all(_INVISIBLE_TAGS):
        tag.decompose()
    body_text = _clean(root.get_text(' '))[:body_limit]

    digest = PageDigest(
        title=title or url,
        meta_description=meta_description,
        headings=headings,
        body_text=body_text,
        social_links=social_links,
        tech_hints=tech_hints,
    )
    logger.debug("Digest for %s: title=%r, %d chars body, %d social links",
                 url, digest.title, len(body_text), len(social_links))
    return digest
