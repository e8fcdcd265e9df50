"""
This module contains the handler functions for the CLI commands.
"""
from .apiserver import (
    create_apiserver_source,
    delete_apiserver_source,
    describe_apiserver_source,
    list_apiserver_sources,
    update_apiserver_source,
)
from .binding import (
    create_sink_binding,
    delete_sink_binding,
    describe_sink_binding,
    list_sink_bindings,
    update_sink_binding,
)
from .broker import create_broker, delete_broker, describe_broker, list_brokers, update_broker
from .container import add_container, load_containers
from .container_source import (
    create_container_source,
    delete_container_source,
    describe_container_source,
    list_container_sources,
    update_container_source,
)
from .ping import (
    create_ping_source,
    delete_ping_source,
    describe_ping_source,
    list_ping_sources,
    update_ping_source,
)
from .revision import delete_revisions, describe_revision, list_revisions
from .route import describe_route, list_routes
from .service import create_service, delete_services, describe_service, list_services, update_service
from .source import list_source_types, list_sources
from .trigger import create_trigger, delete_trigger, describe_trigger, list_triggers, update_trigger

__all__ = [
    "create_service",
    "update_service",
    "delete_services",
    "describe_service",
    "list_services",
    "describe_revision",
    "list_revisions",
    "delete_revisions",
    "describe_route",
    "list_routes",
    "list_source_types",
    "list_sources",
    "create_ping_source",
    "update_ping_source",
    "delete_ping_source",
    "describe_ping_source",
    "list_ping_sources",
    "create_apiserver_source",
    "update_apiserver_source",
    "delete_apiserver_source",
    "describe_apiserver_source",
    "list_apiserver_sources",
    "create_sink_binding",
    "update_sink_binding",
    "delete_sink_binding",
    "describe_sink_binding",
    "list_sink_bindings",
    "create_container_source",
    "update_container_source",
    "delete_container_source",
    "describe_container_source",
    "list_container_sources",
    "add_container",
    "load_containers",
    "create_broker",
    "update_broker",
    "delete_broker",
    "describe_broker",
    "list_brokers",
    "create_trigger",
    "update_trigger",
    "delete_trigger",
    "describe_trigger",
    "list_triggers",
]
