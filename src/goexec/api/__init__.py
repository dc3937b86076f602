"""
Expose the FastAPI application instance.

Importing this module will create a FastAPI application and register
all routes.  Run it with Uvicorn directly or through the package entry
point:

```sh
python -m goexec.api
```
"""

from .main import app

__all__ = ["app"]
