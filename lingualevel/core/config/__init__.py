"""
Configuration subsystem for LinguaLevel.

Static configuration is loaded from environment variables (.env supported)
when this package is imported.

Usage
-----
```python
from lingualevel.core.config import Config

redis_url = Config.REDIS_URL
history_size = Config.get("ACCURACY_HISTORY_SIZE", 50)
```
"""

from lingualevel.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
