from fastapi import HTTPException, status

from rice_ledger.services.exceptions import LedgerError, NotFoundError


def to_http_exception(error: LedgerError) -> HTTPException:
    """
    Map a ledger error to the HTTP error returned to the client.

    Missing records are 404; validation, overpayment and insufficient
    stock are all 400. The detail is the error's ``to_dict()``: a ``code``,
    the readable ``message`` and the fields a client needs to show it,
    e.g. ``available`` and ``requested`` for insufficient stock.
    """
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.to_dict())
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.to_dict())
