from .base import GroupVersionResource

SERVING_GROUP = "serving.knative.dev"
SERVING_VERSION = "v1"
EVENTING_GROUP = "eventing.knative.dev"
MESSAGING_GROUP = "messaging.knative.dev"
SOURCES_GROUP = "sources.knative.dev"
SOURCES_VERSION = "v1"

SERVICE_GVR = GroupVersionResource(SERVING_GROUP, SERVING_VERSION, "services")
REVISION_GVR = GroupVersionResource(SERVING_GROUP, SERVING_VERSION, "revisions")
ROUTE_GVR = GroupVersionResource(SERVING_GROUP, SERVING_VERSION, "routes")
BROKER_GVR = GroupVersionResource(EVENTING_GROUP, "v1", "brokers")
TRIGGER_GVR = GroupVersionResource(EVENTING_GROUP, "v1", "triggers")
CHANNEL_GVR = GroupVersionResource(MESSAGING_GROUP, "v1", "channels")

PING_SOURCE_GVR = GroupVersionResource(SOURCES_GROUP, SOURCES_VERSION, "pingsources")
APISERVER_SOURCE_GVR = GroupVersionResource(
    SOURCES_GROUP, SOURCES_VERSION, "apiserversources"
)
SINK_BINDING_GVR = GroupVersionResource(SOURCES_GROUP, SOURCES_VERSION, "sinkbindings")
CONTAINER_SOURCE_GVR = GroupVersionResource(
    SOURCES_GROUP, SOURCES_VERSION, "containersources"
)

CRD_GVR = GroupVersionResource("apiextensions.k8s.io", "v1", "customresourcedefinitions")

# Label carried by every CustomResourceDefinition of an event source
SOURCE_LABEL_KEY = "duck.knative.dev/source"
SOURCE_LABEL_VALUE = "true"

SERVICE_LABEL_KEY = "serving.knative.dev/service"
