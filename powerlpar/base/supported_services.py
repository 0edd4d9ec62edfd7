from typing import Literal


existing_cloud_providers = Literal["ibm"]


processor_types = Literal["dedicated", "shared", "capped"]


system_types = Literal["any", "s922", "e880", "e980"]


replication_policies = Literal["affinity", "anti-affinity", "none"]


replication_schemes = Literal["prefix", "suffix"]


pin_policies = Literal["none", "soft", "hard"]
