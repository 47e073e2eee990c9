"""Grouping of equivalent download links."""

from typing import Dict, List, Tuple

from hashseries.models.media import DownloadGroup, DownloadLink, DownloadSource


def group_by_quality_and_size(links: List[DownloadLink]) -> List[DownloadGroup]:
    """Collapse links with the same quality and size into one group.

    Links from different providers with matching quality and size become
    alternate sources of one group. Group and source order follow first
    appearance.
    """
    grouped: Dict[Tuple[str, str], DownloadGroup] = {}

    for link in links:
        key = (link.quality, link.size)
        group = grouped.get(key)
        if group is None:
            group = DownloadGroup(
                quality=link.quality,
                size=link.size,
                mime_type=link.mime_type,
            )
            grouped[key] = group
        group.sources.append(
            DownloadSource(provider_type=link.provider_type, url=link.url)
        )

    return list(grouped.values())


def flatten_groups(groups: List[DownloadGroup]) -> List[DownloadLink]:
    """Expand groups back into one link per source."""
    return [
        DownloadLink(
            provider_type=source.provider_type,
            url=source.url,
            quality=group.quality,
            size=group.size,
            mime_type=group.mime_type,
        )
        for group in groups
        for source in group.sources
    ]
