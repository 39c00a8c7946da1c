# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Node configuration.

   The node a client talks to is described by a small XML document:

     <node url="http://idec.example.net/" timeout="10">
       <auth>secret-token</auth>
       <echoes>
         <echo>ii.test.14</echo>
         <echo>pipe.2032</echo>
       </echoes>
       <slice offset="-50" limit="50"/>
     </node>

   Only the url attribute is mandatory. The auth token is opaque and is
   passed to the node unchanged. The slice selects a window of each echo
   index (the offset is negative to count from the end of the index).

"""

from dataclasses import dataclass, field
from os import PathLike, fspath
from typing import ClassVar, Self, TypeAlias

from lxml import etree

__all__ = 'ConfigurationError', 'NodeConfiguration'


ETreeElement: TypeAlias = etree._Element  # noqa: SLF001


class ConfigurationError(ValueError):
    """Raised when a configuration document is not valid."""


@dataclass(frozen=True, kw_only=True, slots=True)
class NodeConfiguration:
    url: str
    echoes: tuple[str, ...] = ()
    offset: int | None = None
    limit: int | None = None
    auth: str | None = field(default=None, repr=False)
    timeout: float = 30.0

    root_tag: ClassVar[str] = 'node'

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigurationError('The node url cannot be empty')
        if not self.url.endswith('/'):
            object.__setattr__(self, 'url', self.url + '/')
        object.__setattr__(self, 'echoes', tuple(self.echoes))
        if self.timeout <= 0:
            raise ConfigurationError(f'The timeout must be positive: {self.timeout!r}')

    @property
    def index_slice(self) -> str | None:
        """The offset:limit path segment used to fetch echo indexes (None for the whole index)"""
        if self.offset is None or self.limit is None:
            return None
        return f'{self.offset}:{self.limit}'

    @classmethod
    def from_string(cls, data: str | bytes) -> Self:
        if isinstance(data, str):
            data = data.encode('utf-8')
        try:
            root = etree.fromstring(data, parser=etree.XMLParser(resolve_entities=False, no_network=True))
        except etree.XMLSyntaxError as exc:
            raise ConfigurationError(f'Invalid configuration document: {exc}') from exc
        return cls.from_element(root)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> Self:
        try:
            tree = etree.parse(fspath(path), parser=etree.XMLParser(resolve_entities=False, no_network=True))  # noqa: S320
        except etree.XMLSyntaxError as exc:
            raise ConfigurationError(f'Invalid configuration document {path!s}: {exc}') from exc
        return cls.from_element(tree.getroot())

    @classmethod
    def from_element(cls, element: ETreeElement) -> Self:
        if element.tag != cls.root_tag:
            raise ConfigurationError(f'The root element must be <{cls.root_tag}>, got <{element.tag}>')
        url = element.get('url')
        if url is None:
            raise ConfigurationError('The <node> element is missing the url attribute')
        auth = element.findtext('auth')
        echoes = tuple((echo.text or '').strip() for echo in element.iterfind('echoes/echo'))
        if '' in echoes:
            raise ConfigurationError('Echo names cannot be empty')
        slice_element = element.find('slice')
        if slice_element is not None:
            offset = _int_attribute(slice_element, 'offset')
            limit = _int_attribute(slice_element, 'limit')
        else:
            offset = limit = None
        timeout_value = element.get('timeout')
        try:
            timeout = 30.0 if timeout_value is None else float(timeout_value)
        except ValueError as exc:
            raise ConfigurationError(f'Invalid timeout value: {timeout_value!r}') from exc
        return cls(url=url, echoes=echoes, offset=offset, limit=limit, auth=auth.strip() if auth is not None else None, timeout=timeout)

    def to_element(self) -> ETreeElement:
        element = etree.Element(self.root_tag, url=self.url, timeout=f'{self.timeout:g}')
        if self.auth is not None:
            etree.SubElement(element, 'auth').text = self.auth
        if self.echoes:
            echoes = etree.SubElement(element, 'echoes')
            for name in self.echoes:
                etree.SubElement(echoes, 'echo').text = name
        if self.offset is not None or self.limit is not None:
            slice_element = etree.SubElement(element, 'slice')
            if self.offset is not None:
                slice_element.set('offset', str(self.offset))
            if self.limit is not None:
                slice_element.set('limit', str(self.limit))
        return element

    def to_string(self) -> str:
        return etree.tostring(self.to_element(), encoding='unicode', pretty_print=True)


def _int_attribute(element: ETreeElement, name: str) -> int | None:
    value = element.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f'Invalid {name} value on <{element.tag}>: {value!r}') from exc
