import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from kubernetes import client, watch

from .base import GroupVersionResource, KnObject
from .wait import DEFAULT_TIMEOUT, MessageCallback, ReadyWaiter, is_deleted_event
from ..errors import KnError, get_error, is_conflict, is_not_found

logger = logging.getLogger(__name__)

MAX_UPDATE_RETRIES = 3
RETRY_INTERVAL = 1.0


class DynamicClient:
    """
    Schema-agnostic access to custom resources keyed by group, version and plural.

    A namespace of ``None`` addresses a cluster-scoped resource; for ``list`` the
    empty string lists across all namespaces.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        self.api = client.CustomObjectsApi(api_client)

    def get(self, gvr: GroupVersionResource, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        logger.debug("GET %s %s/%s", gvr, namespace or "", name)
        try:
            if namespace:
                return self.api.get_namespaced_custom_object(
                    group=gvr.group, version=gvr.version, namespace=namespace, plural=gvr.resource, name=name
                )
            return self.api.get_cluster_custom_object(
                group=gvr.group, version=gvr.version, plural=gvr.resource, name=name
            )
        except Exception as e:
            raise get_error(e) from e

    def list(
        self,
        gvr: GroupVersionResource,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> Dict[str, Any]:
        logger.debug("LIST %s namespace=%r selector=%r", gvr, namespace, label_selector)
        kwargs = {"label_selector": label_selector} if label_selector else {}
        try:
            if namespace:
                return self.api.list_namespaced_custom_object(
                    group=gvr.group, version=gvr.version, namespace=namespace, plural=gvr.resource, **kwargs
                )
            return self.api.list_cluster_custom_object(
                group=gvr.group, version=gvr.version, plural=gvr.resource, **kwargs
            )
        except Exception as e:
            raise get_error(e) from e

    def create(self, gvr: GroupVersionResource, body: Dict[str, Any], namespace: Optional[str] = None) -> Dict[str, Any]:
        logger.debug("CREATE %s %s/%s", gvr, namespace or "", body.get("metadata", {}).get("name"))
        try:
            if namespace:
                return self.api.create_namespaced_custom_object(
                    group=gvr.group, version=gvr.version, namespace=namespace, plural=gvr.resource, body=body
                )
            return self.api.create_cluster_custom_object(
                group=gvr.group, version=gvr.version, plural=gvr.resource, body=body
            )
        except Exception as e:
            raise get_error(e) from e

    def replace(
        self, gvr: GroupVersionResource, name: str, body: Dict[str, Any], namespace: Optional[str] = None
    ) -> Dict[str, Any]:
        logger.debug("UPDATE %s %s/%s", gvr, namespace or "", name)
        try:
            if namespace:
                return self.api.replace_namespaced_custom_object(
                    group=gvr.group, version=gvr.version, namespace=namespace, plural=gvr.resource,
                    name=name, body=body,
                )
            return self.api.replace_cluster_custom_object(
                group=gvr.group, version=gvr.version, plural=gvr.resource, name=name, body=body
            )
        except Exception as e:
            raise get_error(e) from e

    def delete(
        self,
        gvr: GroupVersionResource,
        name: str,
        namespace: Optional[str] = None,
        propagation_policy: Optional[str] = None,
    ) -> Dict[str, Any]:
        logger.debug("DELETE %s %s/%s", gvr, namespace or "", name)
        kwargs = {"propagation_policy": propagation_policy} if propagation_policy else {}
        try:
            if namespace:
                return self.api.delete_namespaced_custom_object(
                    group=gvr.group, version=gvr.version, namespace=namespace, plural=gvr.resource,
                    name=name, **kwargs,
                )
            return self.api.delete_cluster_custom_object(
                group=gvr.group, version=gvr.version, plural=gvr.resource, name=name, **kwargs
            )
        except Exception as e:
            raise get_error(e) from e

    def watch(
        self, gvr: GroupVersionResource, name: str, namespace: str, timeout_seconds: int
    ) -> Iterator[Dict[str, Any]]:
        """Streams watch events for a single named object."""
        logger.debug("WATCH %s %s/%s timeout=%ss", gvr, namespace, name, timeout_seconds)
        w = watch.Watch()
        try:
            yield from w.stream(
                self.api.list_namespaced_custom_object,
                group=gvr.group,
                version=gvr.version,
                namespace=namespace,
                plural=gvr.resource,
                field_selector=f"metadata.name={name}",
                timeout_seconds=timeout_seconds,
            )
        except Exception as e:
            raise get_error(e) from e
        finally:
            w.stop()


def update_with_retry(
    resource_client: "ResourceClient",
    name: str,
    update_fn: Callable[[Any], Any],
    retries: int = MAX_UPDATE_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Read-modify-write ``name`` with ``update_fn``, retrying on version conflicts.

    ``retries`` is the maximum number of update attempts. Only conflicts are
    retried; any other failure propagates immediately.
    """
    attempt = 0
    while True:
        attempt += 1
        obj = resource_client.get(name)
        if obj.metadata.deletion_timestamp:
            raise KnError(
                f"can't update {resource_client.kind.lower()} {name} because it has been marked for deletion"
            )
        updated = update_fn(obj)
        try:
            return resource_client.update(updated)
        except KnError as e:
            if not is_conflict(e):
                raise
            if attempt >= retries:
                raise KnError(f"giving up after {attempt} retries: {e}") from e
            logger.info("Conflict updating %s '%s', retrying (%d/%d)", resource_client.kind, name, attempt, retries)
            sleep(RETRY_INTERVAL)


class ResourceClient:
    """Typed CRUD for a single kind in a single namespace."""

    def __init__(
        self,
        dynamic: DynamicClient,
        gvr: GroupVersionResource,
        kind: str,
        namespace: str,
        decode: Callable[[Dict[str, Any]], Any] = KnObject.from_dict,
    ):
        self.dynamic = dynamic
        self.gvr = gvr
        self.kind = kind
        self.namespace = namespace
        self.decode = decode
        self.waiter = ReadyWaiter(kind.lower())
        self.retry_sleep: Callable[[float], None] = time.sleep

    @staticmethod
    def _body(obj: Union[KnObject, Dict[str, Any]]) -> Dict[str, Any]:
        return obj.to_dict() if isinstance(obj, KnObject) else obj

    def _with_namespace(self, body: Dict[str, Any]) -> Dict[str, Any]:
        metadata = body.setdefault("metadata", {})
        if self.namespace:
            metadata.setdefault("namespace", self.namespace)
        body.setdefault("apiVersion", self.gvr.api_version)
        body.setdefault("kind", self.kind)
        return body

    def get(self, name: str) -> Any:
        return self.decode(self.dynamic.get(self.gvr, name, self.namespace))

    def list_raw(self, label_selector: Optional[str] = None) -> Dict[str, Any]:
        return self.dynamic.list(self.gvr, self.namespace, label_selector)

    def list(self, label_selector: Optional[str] = None) -> List[Any]:
        return [self.decode(item) for item in self.list_raw(label_selector).get("items") or []]

    def create(self, obj: Union[KnObject, Dict[str, Any]]) -> Any:
        body = self._with_namespace(self._body(obj))
        return self.decode(self.dynamic.create(self.gvr, body, self.namespace))

    def update(self, obj: Union[KnObject, Dict[str, Any]]) -> Any:
        body = self._with_namespace(self._body(obj))
        name = body["metadata"]["name"]
        return self.decode(self.dynamic.replace(self.gvr, name, body, self.namespace))

    def update_with_retry(self, name: str, update_fn: Callable[[Any], Any], retries: int = MAX_UPDATE_RETRIES) -> Any:
        return update_with_retry(self, name, update_fn, retries, sleep=self.retry_sleep)

    def watch(self, name: str, timeout_seconds: int) -> Iterator[Dict[str, Any]]:
        return self.dynamic.watch(self.gvr, name, self.namespace, timeout_seconds)

    def wait_for_ready(
        self, name: str, timeout: float = DEFAULT_TIMEOUT, message_callback: Optional[MessageCallback] = None
    ) -> float:
        return self.waiter.wait(self.watch, name, timeout, message_callback)

    def _gone(self, name: str) -> bool:
        try:
            self.dynamic.get(self.gvr, name, self.namespace)
        except KnError as e:
            if not is_not_found(e):
                raise
            return True
        return False

    def delete(self, name: str, wait: bool = False, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not wait:
            self.dynamic.delete(self.gvr, name, self.namespace)
            return
        self.dynamic.delete(self.gvr, name, self.namespace, propagation_policy="Foreground")
        self.waiter.wait_for_event(
            self.watch, name, is_deleted_event, timeout, already_done=lambda: self._gone(name)
        )
