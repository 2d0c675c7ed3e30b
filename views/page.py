"""
Page document the synchronizer reads and writes.

`Page` is the contract the use cases depend on; `HtmlPage` implements it over a
BeautifulSoup tree so the reconciled markup can be rendered by any host.
"""

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from bs4 import BeautifulSoup, Tag

from use_cases.session_models import RegionTag

log = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class Page(Protocol):
    @property
    def location(self) -> str: ...

    @property
    def is_protected(self) -> bool: ...

    def replace_location(self, url: str) -> None: ...

    def navigate(self, url: str) -> None: ...

    def set_region_visibility(self, tag: RegionTag, visible: bool) -> int: ...

    def set_text(self, element_id: str, text: str) -> bool: ...

    def bind(self, selector: str, action: Action) -> bool: ...


class HtmlPage:
    def __init__(self, markup: str, location: str, parser: str = "html.parser"):
        self._soup = BeautifulSoup(markup, parser)
        self._location = location
        self._navigated_to: Optional[str] = None
        self._actions: Dict[str, Action] = {}
        self._check_region_tags()

    @classmethod
    def from_file(cls, path: str, location: str) -> "HtmlPage":
        return cls(Path(path).read_text(encoding="utf-8"), location)

    def _check_region_tags(self) -> None:
        both = [
            el for el in self._soup.select(f".{RegionTag.VISIBLE_WHEN_AUTHENTICATED.value}")
            if RegionTag.VISIBLE_WHEN_UNAUTHENTICATED.value in el.get("class", [])
        ]
        if both:
            raise ValueError(f"Element <{both[0].name}> carries both visibility tags")

    @property
    def location(self) -> str:
        return self._location

    @property
    def navigated_to(self) -> Optional[str]:
        return self._navigated_to

    @property
    def is_protected(self) -> bool:
        body = self._soup.body
        if body is None:
            return False
        return RegionTag.VISIBLE_WHEN_AUTHENTICATED.value in body.get("class", [])

    def replace_location(self, url: str) -> None:
        """Rewrites the visible address without reloading (history.replaceState)."""
        self._location = url

    def navigate(self, url: str) -> None:
        if self._navigated_to is not None:
            log.debug(f"Page already leaving for {self._navigated_to}, ignoring {url}")
            return
        log.info(f"Navigating away to {url}")
        self._navigated_to = url

    def regions(self, tag: RegionTag) -> List[Tag]:
        return self._soup.select(f".{tag.value}")

    def set_region_visibility(self, tag: RegionTag, visible: bool) -> int:
        regions = self.regions(tag)
        for region in regions:
            if visible:
                if region.has_attr("hidden"):
                    del region["hidden"]
            else:
                region["hidden"] = ""
        return len(regions)

    def text(self, element_id: str) -> Optional[str]:
        element = self._soup.find(id=element_id)
        if element is None:
            return None
        return element.get_text()

    def set_text(self, element_id: str, text: str) -> bool:
        element = self._soup.find(id=element_id)
        if element is None:
            return False
        element.clear()
        element.append(text)
        return True

    def bind(self, selector: str, action: Action) -> bool:
        if not self._soup.select(selector):
            log.debug(f"No control matches {selector}, skipping")
            return False
        self._actions[selector] = action
        return True

    @property
    def bound_controls(self) -> List[str]:
        return list(self._actions)

    def control_label(self, selector: str) -> str:
        element = self._soup.select_one(selector)
        if element is None:
            return ""
        return element.get_text(strip=True)

    def is_control_visible(self, selector: str) -> bool:
        element = self._soup.select_one(selector)
        if element is None:
            return False
        if element.has_attr("hidden"):
            return False
        return not any(parent.has_attr("hidden") for parent in element.parents if isinstance(parent, Tag))

    async def click(self, selector: str) -> bool:
        action = self._actions.get(selector)
        if action is None:
            return False
        await action()
        return True

    def render(self) -> str:
        return str(self._soup)
