import re
from dataclasses import dataclass
from html import unescape
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString

_FALLBACK_DESCRIPTION_CHARS = 300


@dataclass(frozen=True)
class PageMetadata:
    title: str
    description: str
    image_url: str
    site_name: str


def html_to_text(html: str) -> str:
    """Convert an HTML string to whitespace-normalized visible text."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(["script", "style", "head", "nav", "footer"]):
        tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for tag in soup.find_all(["p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]):
        tag.insert(0, NavigableString("\n"))
        tag.append(NavigableString("\n"))

    body = soup.find("body")
    text = unescape((body or soup).get_text())

    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _meta_content(soup: BeautifulSoup, *keys: str) -> str:
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag and tag.get("content"):
            return str(tag["content"]).strip()
    return ""


def extract_page_metadata(html: str, base_url: str) -> PageMetadata:
    """Pull title, description, preview image and site name from a page.

    Open Graph tags win over plain ``<title>``/``<meta name=description>``.
    Relative image URLs are resolved against ``base_url``. Pages without any
    description fall back to the start of their visible text.
    """
    soup = BeautifulSoup(html, "lxml")

    title = _meta_content(soup, "og:title", "twitter:title")
    if not title and soup.title:
        title = soup.title.get_text(strip=True)

    description = _meta_content(soup, "og:description", "description", "twitter:description")
    if not description:
        text = html_to_text(html)
        description = text[:_FALLBACK_DESCRIPTION_CHARS].strip()

    image_url = _meta_content(soup, "og:image", "og:image:url", "twitter:image")
    if image_url:
        image_url = urljoin(base_url, image_url)

    return PageMetadata(
        title=title or "Untitled",
        description=description,
        image_url=image_url,
        site_name=_meta_content(soup, "og:site_name"),
    )
