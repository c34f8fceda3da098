"""Constants for the OCM Agent Operator."""

# API Group
API_GROUP = "ocmagent.managed.openshift.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Parent resource
KIND_OCM_AGENT = "OcmAgent"
PLURAL_OCM_AGENTS = "ocmagents"

# Managed resource kinds
KIND_CONFIG_MAP = "ConfigMap"
KIND_SERVICE = "Service"
KIND_SECRET = "Secret"
KIND_DEPLOYMENT = "Deployment"
KIND_CLUSTER_VERSION = "ClusterVersion"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "ocm-agent-operator"
CONTROLLER_NAME = "ocm-agent-operator"

# Agent workload naming
DEFAULT_AGENT_NAMESPACE = "openshift-ocm-agent-operator"
OCM_AGENT_NAME = "ocm-agent"
OCM_AGENT_SERVICE_NAME = "ocm-agent"
OCM_AGENT_SERVICE_ACCOUNT = "ocm-agent"
OCM_AGENT_COMMAND = "ocm-agent"
OCM_AGENT_PORT = 8081
OCM_AGENT_PORT_NAME = "ocm-agent"
OCM_AGENT_SERVICE_PORT = 8081
OCM_AGENT_SECRET_MOUNT_PATH = "/secrets"
OCM_AGENT_CONFIG_MOUNT_PATH = "/configs"
OCM_AGENT_VOLUME_MODE = 0o600

# Labels
LABEL_APP = "app"

# Annotations
ANNOTATION_DEPLOYMENT_REVISION = "deployment.kubernetes.io/revision"

# Config keys
CONFIG_SERVICES_KEY = "services"
CONFIG_URL_KEY = "ocmBaseURL"
CONFIG_CLUSTER_ID_KEY = "clusterID"
ACCESS_TOKEN_SECRET_KEY = "access_token"

# Cluster pull secret
PULL_SECRET_NAMESPACE = "openshift-config"
PULL_SECRET_NAME = "pull-secret"
PULL_SECRET_KEY = ".dockerconfigjson"
PULL_SECRET_AUTH_TOKEN_KEY = "cloud.openshift.com"

# Cluster version lookup
CLUSTER_VERSION_NAME = "version"

# Scheduling
INFRA_NODE_LABEL = "node-role.kubernetes.io/infra"

# Condition Types
COND_READY = "Ready"
COND_RECONCILE_FAILED = "ReconcileFailed"

# Condition Reasons
COND_REASON_READY = "Ready"
COND_REASON_NOT_READY = "NotReady"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_RESOURCES_RECONCILED = "ResourcesReconciled"
EVENT_REASON_RESOURCES_REMOVED = "ResourcesRemoved"
