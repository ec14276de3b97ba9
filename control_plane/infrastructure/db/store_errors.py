from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from control_plane.domain.exceptions import DomainError, StoreUnavailableError


@contextmanager
def translate_store_errors(
    operation: str,
    *,
    conflict_error: type[DomainError] | None = None,
) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        if conflict_error is None:
            raise StoreUnavailableError(f"{operation} violated a store constraint.") from exc
        raise conflict_error(f"{operation} conflicts with an existing row.") from exc
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(f"{operation} failed.") from exc
