"""Handles to remote DOM elements."""

import urllib.parse
from typing import Any, Dict, List, TYPE_CHECKING

from . import messages
from .messages import ElementReference, LocationStrategy
from .screenshot import Screenshot

if TYPE_CHECKING:
    from .session import DriverSession


class Element:
    """
    An element within a WebDriver session.

    The element borrows its session: it must not be used after the session
    is closed (doing so raises SessionNotActiveError). The reference is opaque
    and becomes stale when the document is replaced; staleness is reported by
    the driver as a WebDriverError on the next access.
    """

    def __init__(self, session: "DriverSession", reference: str):
        self.session = session
        self._reference = reference

    @property
    def raw_reference(self) -> str:
        """The opaque id assigned by the driver."""
        return self._reference

    def reference(self) -> Dict[str, str]:
        """Wire encoding of this element, usable as a script or frame argument."""
        return ElementReference(self._reference).to_json()

    def _suffix(self, *parts: str) -> str:
        quoted = [urllib.parse.quote(p, safe="") for p in (self._reference,) + parts]
        return "element/" + "/".join(quoted)

    # Properties

    def attribute(self, name: str) -> Any:
        return self.session._get(self._suffix("attribute", name))

    def property(self, name: str) -> Any:
        """Return this element's DOM property value."""
        return self.session._get(self._suffix("property", name))

    def css_value(self, name: str) -> str:
        return self.session._get(self._suffix("css", name), messages.decode_string)

    def text(self) -> str:
        return self.session._get(self._suffix("text"), messages.decode_string)

    def name(self) -> str:
        """Returns the tag name for this element."""
        return self.session._get(self._suffix("name"), messages.decode_string)

    tag_name = name

    # Interaction

    def click(self) -> None:
        self.session._post(self._suffix("click"))

    def clear(self) -> None:
        self.session._post(self._suffix("clear"))

    def send_keys(self, text: str) -> None:
        """Send key presses to this element."""
        self.session._post(self._suffix("value"), messages.send_keys_cmd(text))

    # HTML retrieval goes through script execution because not every driver
    # exposes innerHTML/outerHTML as attributes.

    def inner_html(self) -> Any:
        return self.session.execute("return arguments[0].innerHTML;", [self.reference()])

    def outer_html(self) -> Any:
        return self.session.execute("return arguments[0].outerHTML;", [self.reference()])

    # Children

    def find_element(
        self, selector: str, strategy: LocationStrategy = LocationStrategy.CSS
    ) -> "Element":
        ref = self.session._post(
            self._suffix("element"),
            messages.find_element_cmd(selector, strategy),
            messages.decode_element_reference,
        )
        return Element(self.session, ref.reference)

    def find_elements(
        self, selector: str, strategy: LocationStrategy = LocationStrategy.CSS
    ) -> List["Element"]:
        refs = self.session._post(
            self._suffix("elements"),
            messages.find_element_cmd(selector, strategy),
            messages.decode_element_references,
        )
        return [Element(self.session, ref.reference) for ref in refs]

    def screenshot(self) -> Screenshot:
        """Take a screenshot of this element."""
        return Screenshot(self.session._get(self._suffix("screenshot"), messages.decode_string))

    def __eq__(self, other):
        if not isinstance(other, Element):
            return NotImplemented
        return self.session is other.session and self._reference == other._reference

    def __hash__(self):
        return hash((id(self.session), self._reference))

    def __repr__(self):
        return f"Element(reference={self._reference!r})"
