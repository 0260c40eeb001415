from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping

from halcache.services.channels import Channel
from halcache.utils.hal import resolve_base_url, self_link
from halcache.utils.query import build_url, merge_options
from halcache.models.options import Options

if TYPE_CHECKING:
    from halcache.resources.resource import Resource


# -----------------------------------------------------------------------------
# Query state
# -----------------------------------------------------------------------------
class QueryState:
    """
    Current query options of a collection handle.

    Options are re-decoded from the self link of every payload. Setting them
    always publishes on the options channel, whether or not a fetch follows.
    """

    def __init__(
        self,
        owner: "Resource",
        decode: Callable[[str], Options],
        initial: Options,
    ) -> None:
        self._owner = owner
        self._decode = decode
        self._options: Options = initial
        self._channel: Channel[Options] = Channel()

        owner.data_channel.subscribe(self._on_data)

    @property
    def options(self) -> Options:
        return self._options

    @options.setter
    def options(self, options: Options) -> None:
        self._options = options
        self._channel.publish(options)

    @property
    def channel(self) -> Channel[Options]:
        return self._channel

    def merge(self, change_set: Mapping[str, Any]) -> Options:
        return merge_options(self._options, change_set)

    def resolve_url(self, change_set: Mapping[str, Any]) -> str:
        if self._owner.has_data:
            base_url = self._owner.base_url
        else:
            base_url = resolve_base_url(self._owner.alias)
        return build_url(base_url, self.merge(change_set))

    def _on_data(self, data: dict) -> None:
        self.options = self._decode(self_link(data))
