from . import ip, oc, provision

__all__ = ['ip', 'oc', 'provision']
