from .instance_client import PowerInstanceClient

__all__ = ["PowerInstanceClient"]
