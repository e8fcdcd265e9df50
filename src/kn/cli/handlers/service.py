import logging
from typing import Optional, Sequence

from .common import (
    effective_timeout,
    print_list,
    print_object,
    print_writer,
    wait_until_ready,
)
from ..utils import KnParams, get_namespace
from ...crds.base import KnObject
from ...crds.service import ServiceConfig, new_service, service_image, service_url, traffic_targets
from ...errors import ConflictError, KnError, NotFoundError, ValidationError, operation_error
from ...printers.describe import (
    PrefixWriter,
    conditions_value,
    non_ready_reason,
    ready_condition,
    write_conditions,
    write_metadata,
)
from ...printers.output import as_list
from ...printers.table import Column, TablePrinter
from ...utils.time import age

logger = logging.getLogger(__name__)

SERVICE_COLUMNS = [
    Column("Name", lambda s: s.name),
    Column("URL", service_url),
    Column("Latest", lambda s: s.status.get("latestReadyRevisionName", "")),
    Column("Age", lambda s: age(s.metadata.creation_timestamp)),
    Column("Conditions", lambda s: conditions_value(s.conditions)),
    Column("Ready", lambda s: ready_condition(s.conditions)),
    Column("Reason", lambda s: non_ready_reason(s.conditions)),
]


def _exists(client, name: str) -> Optional[KnObject]:
    try:
        return client.get(name)
    except NotFoundError:
        return None


def _wait(params: KnParams, client, name: str, namespace: str, verb: str, wait_timeout: Optional[int]) -> None:
    console = params.get_console()
    timeout = effective_timeout(params, wait_timeout)
    elapsed = wait_until_ready(
        console, client, name, timeout, f"{verb} service '{name}' in namespace '{namespace}'..."
    )
    url = service_url(client.get(name))
    console.print(f"Service '{name}' ready after {elapsed:.1f}s, available at URL:")
    console.print(url)


def create_service(
    params: KnParams,
    name: str,
    config: ServiceConfig,
    namespace: Optional[str] = None,
    force: bool = False,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
    target: Optional[str] = None,
) -> None:
    """Creates a service, replacing an existing one only with ``force``."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    service = new_service(name, target_namespace, config)
    client = params.new_service_client(target_namespace, target)

    try:
        existing = _exists(client, name)
        if existing is not None and not force:
            raise ConflictError("the service already exists and no --force option was given")
        if existing is not None:
            logger.debug("Replacing service %s/%s at resourceVersion %s", target_namespace, name,
                         existing.metadata.resource_version)
            service.metadata.resource_version = existing.metadata.resource_version
            client.update(service)
        else:
            client.create(service)
    except KnError as e:
        raise operation_error("create", "service", name, target_namespace, e) from e

    verb = "replaced" if existing is not None else "created"
    console.print(f"Service '{name}' {verb} in namespace '{target_namespace}'.")
    if wait and not target:
        _wait(params, client, name, target_namespace, "Creating" if existing is None else "Replacing", wait_timeout)


def update_service(
    params: KnParams,
    name: str,
    config: ServiceConfig,
    namespace: Optional[str] = None,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
    target: Optional[str] = None,
) -> None:
    """Applies ``config`` to an existing service, retrying on update conflicts."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    config.validate()
    client = params.new_service_client(target_namespace, target)

    try:
        client.update_with_retry(name, config.apply)
    except KnError as e:
        raise operation_error("update", "service", name, target_namespace, e) from e

    console.print(f"Service '{name}' updated in namespace '{target_namespace}'.")
    if wait and not target:
        _wait(params, client, name, target_namespace, "Updating", wait_timeout)


def delete_services(
    params: KnParams,
    names: Sequence[str],
    namespace: Optional[str] = None,
    delete_all: bool = False,
    wait: bool = True,
    wait_timeout: Optional[int] = None,
    target: Optional[str] = None,
) -> None:
    """Deletes the named services, or every service in the namespace."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = params.new_service_client(target_namespace, target)

    if delete_all:
        if names:
            raise ValidationError("'service delete' with --all flag requires no arguments")
        names = [s.name for s in client.list()]
        if not names:
            console.print("No services found.")
            return
    elif not names:
        raise ValidationError("'service delete' requires the service name(s)")

    timeout = effective_timeout(params, wait_timeout)
    errors = []
    for name in names:
        try:
            client.delete(name, wait=wait and not target, timeout=timeout)
        except KnError as e:
            errors.append(operation_error("delete", "service", name, target_namespace, e))
            continue
        console.print(f"Service '{name}' successfully deleted in namespace '{target_namespace}'.")

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise KnError("\n".join(str(e) for e in errors))


def _write_traffic(dw: PrefixWriter, service: KnObject) -> None:
    targets = traffic_targets(service)
    if not targets:
        return
    section = dw.write_attribute("Revisions", "")
    for traffic in targets:
        revision = traffic.get("revisionName", "")
        if traffic.get("latestRevision"):
            revision = f"@latest ({revision})"
        if traffic.get("tag"):
            revision += f" #{traffic['tag']}"
        section.write_cols(f"{traffic.get('percent', 0)}%", revision)


def describe_service(
    params: KnParams,
    name: str,
    namespace: Optional[str] = None,
    output: Optional[str] = None,
    verbose: bool = False,
    target: Optional[str] = None,
) -> None:
    """Prints the details of a service."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace)
    client = params.new_service_client(target_namespace, target)

    try:
        service = client.get(name)
    except KnError as e:
        raise operation_error("describe", "service", name, target_namespace, e) from e

    if print_object(console, service.to_dict(), output):
        return

    dw = PrefixWriter()
    write_metadata(dw, service.metadata, verbose)
    dw.write_attribute("URL", service_url(service))
    dw.write_attribute("Image", service_image(service))
    _write_traffic(dw, service)
    write_conditions(dw, service.conditions, verbose)
    print_writer(console, dw)


def list_services(
    params: KnParams,
    name: Optional[str] = None,
    namespace: Optional[str] = None,
    all_namespaces: bool = False,
    output: Optional[str] = None,
    no_headers: bool = False,
    target: Optional[str] = None,
) -> None:
    """Lists services, or only the named one."""
    console = params.get_console()
    target_namespace = get_namespace(params, namespace, all_namespaces)
    client = params.new_service_client(target_namespace, target)

    raw = client.list_raw()
    items = raw.get("items") or []
    if name:
        items = [i for i in items if (i.get("metadata") or {}).get("name") == name]
        raw = as_list(items)
    print_list(
        console,
        TablePrinter(SERVICE_COLUMNS),
        raw,
        [KnObject.from_dict(i) for i in items],
        "No services found.",
        all_namespaces,
        output,
        no_headers,
    )
