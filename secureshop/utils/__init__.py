from .datetime import Clock, get_current_time, seconds_until

__all__ = ['Clock', 'get_current_time', 'seconds_until']
