CRD_GROUP = "echoh.wonderscloud.com"
CRD_VERSION = "v1alpha1"
CRD_KIND_MYAPP = "MyApp"
CRD_PLURAL_MYAPP = "myapps"

FINALIZER = f"{CRD_GROUP}/finalizer"

# Condition types written to MyApp status
CONDITION_AVAILABLE = "Available"
CONDITION_UNAVAILABLE = "Unavailable"
