import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .base import KnObject
from .client import MAX_UPDATE_RETRIES, update_with_retry
from .const import SERVICE_GVR
from .wait import DEFAULT_TIMEOUT, MessageCallback
from ..errors import ConflictError, KnError, NotFoundError

logger = logging.getLogger(__name__)

KSVC_DIR = "ksvc"


def _file_mode(target: str) -> Optional[str]:
    if target.endswith((".yaml", ".yml")):
        return "yaml"
    if target.endswith(".json"):
        return "json"
    return None


class GitOpsClient:
    """
    Service client that reads and writes manifests in a local directory tree
    instead of talking to a cluster.

    Services live at ``<target>/<namespace>/ksvc/<name>.yaml``. When ``target``
    itself names a ``.yaml``, ``.yml`` or ``.json`` file, that single file holds
    the one service.
    """

    kind = "Service"
    gvr = SERVICE_GVR

    def __init__(self, target: Union[str, Path], namespace: str):
        self.target = Path(target)
        self.namespace = namespace
        self.file_format = _file_mode(str(target))
        self.retry_sleep: Callable[[float], None] = lambda _: None

    def _path(self, name: str) -> Path:
        if self.file_format:
            return self.target
        return self.target / self.namespace / KSVC_DIR / f"{name}.yaml"

    def _read(self, path: Path, name: str) -> Dict[str, Any]:
        try:
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise NotFoundError(f'services.serving.knative.dev "{name}" not found') from None

    def _write(self, body: Dict[str, Any], path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            if self.file_format == "json":
                json.dump(body, f, indent=2)
                f.write("\n")
            else:
                yaml.safe_dump(body, f, default_flow_style=False, sort_keys=False)
        logger.debug("Wrote %s", path)

    @staticmethod
    def _body(obj: Union[KnObject, Dict[str, Any]]) -> Dict[str, Any]:
        body = obj.to_dict() if isinstance(obj, KnObject) else dict(obj)
        body["apiVersion"] = SERVICE_GVR.api_version
        body["kind"] = "Service"
        return body

    def get(self, name: str) -> KnObject:
        return KnObject.from_dict(self._read(self._path(name), name))

    def list_raw(self, label_selector: Optional[str] = None) -> Dict[str, Any]:
        return {"apiVersion": "v1", "kind": "List", "items": self._list_items()}

    def list(self, label_selector: Optional[str] = None) -> List[KnObject]:
        return [KnObject.from_dict(item) for item in self._list_items()]

    def _list_items(self) -> List[Dict[str, Any]]:
        if self.file_format:
            return [self._read(self.target, "")]
        root = self.target / self.namespace if self.namespace else self.target
        if not root.exists():
            raise KnError(f"directory '{root}' not present")
        items = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            if KSVC_DIR not in Path(dirpath).relative_to(self.target).parts:
                continue
            for filename in sorted(filenames):
                if filename.endswith(".yaml"):
                    items.append(self._read(Path(dirpath) / filename, filename[:-5]))
        return items

    def create(self, obj: Union[KnObject, Dict[str, Any]], force: bool = False) -> KnObject:
        body = self._body(obj)
        name = body["metadata"]["name"]
        if self.file_format:
            self._write(body, self.target)
            return KnObject.from_dict(body)
        if not self.target.is_dir():
            raise KnError(
                f"directory '{self.target}' not present, please create the directory and try again"
            )
        path = self._path(name)
        if path.exists() and not force:
            raise ConflictError(f"service '{name}' already exists in {path}")
        self._write(body, path)
        return KnObject.from_dict(body)

    def update(self, obj: Union[KnObject, Dict[str, Any]]) -> KnObject:
        body = self._body(obj)
        self.get(body["metadata"]["name"])
        return self.create(body, force=True)

    def update_with_retry(
        self, name: str, update_fn: Callable[[Any], Any], retries: int = MAX_UPDATE_RETRIES
    ) -> KnObject:
        return update_with_retry(self, name, update_fn, retries, sleep=self.retry_sleep)

    def delete(self, name: str, wait: bool = False, timeout: float = DEFAULT_TIMEOUT) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError(f'services.serving.knative.dev "{name}" not found') from None

    def wait_for_ready(
        self, name: str, timeout: float = DEFAULT_TIMEOUT, message_callback: Optional[MessageCallback] = None
    ) -> float:
        return 0.0
