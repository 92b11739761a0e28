from __future__ import annotations

from urllib.parse import urlparse


def extract_domain(url: str) -> str:
    """Extract domain from URL for display."""
    try:
        return urlparse(url).netloc
    except ValueError:
        return url


def normalize_domain(value: str) -> str | None:
    """Reduce a URL or bare host ("www.G2.com/reviews") to "g2.com".

    Returns None for values that do not look like a host at all.
    """
    text = value.strip().lower()
    if not text:
        return None
    if "://" not in text:
        text = f"https://{text}"
    host = extract_domain(text).split("@")[-1].split(":")[0]
    if host.startswith("www."):
        host = host[4:]
    if "." not in host or " " in host:
        return None
    return host


def collect_domains(*groups: list[str | None]) -> list[str]:
    """Merge domain candidates into a deduplicated list, first occurrence wins."""
    seen: set[str] = set()
    domains: list[str] = []
    for group in groups:
        for candidate in group:
            if not isinstance(candidate, str):
                continue
            domain = normalize_domain(candidate)
            if domain and domain not in seen:
                seen.add(domain)
                domains.append(domain)
    return domains
