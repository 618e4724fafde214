# app/core/errors.py
from contextlib import contextmanager
from fastapi import HTTPException, status
from ulasis.app.services.scan_tracking import QRCodeExpired


@contextmanager
def service_errors():
    """Turn service-layer exceptions into HTTP errors."""
    try:
        yield
    except QRCodeExpired as e:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e).strip("'\""))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
