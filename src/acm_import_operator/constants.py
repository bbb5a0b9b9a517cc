"""Constants for the ACM Import Operator."""

# API Group
API_GROUP = "acm.kubespress.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_CERTIFICATE_IMPORT = "ACMCertificateImport"
PLURAL_CERTIFICATE_IMPORT = "acmcertificateimports"

# Controller identity used in structured logs
CONTROLLER_NAME = "acm-import-operator"

# Annotations
# Annotation read by the AWS load balancer integration on Services
ANNOTATION_SERVICE_SSL_CERT = "service.beta.kubernetes.io/aws-load-balancer-ssl-cert"
# Set on ACMCertificateImports to the resourceVersion of the Secret last seen changing
ANNOTATION_SECRET_VERSION = f"{API_GROUP}/secret-version"

# Finalizers
FINALIZER = f"{API_GROUP}/imported"

# Field Manager
FIELD_MANAGER = API_GROUP

# Secret keys holding the certificate material
SECRET_KEY_CERTIFICATE = "tls.crt"
SECRET_KEY_PRIVATE_KEY = "tls.key"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_CERTIFICATE_IMPORTED = "CertificateImported"
EVENT_REASON_CERTIFICATE_DELETED = "CertificateDeleted"
EVENT_REASON_ANNOTATION_APPLIED = "AnnotationApplied"
EVENT_REASON_ANNOTATION_REMOVED = "AnnotationRemoved"
EVENT_REASON_ANNOTATION_CONFLICT = "AnnotationConflict"
EVENT_REASON_FINALIZER_RELEASED = "FinalizerReleased"
