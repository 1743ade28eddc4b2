from flask import jsonify
from ..constants.service_code import HTTP_STATUS_CODES


def prepared_response(status, status_code, message, data=None, errors=None, required_fields=None):
    mandatory_fields = ["message", "status_code", "success"]

    all_fields = {
        "message": f"{message}",
        "status_code": HTTP_STATUS_CODES[status_code],
        "success": status,
        "data": data,
        "required_fields": required_fields,
        "errors": errors,
    }

    # Mandatory fields always appear; optional ones only when they carry a value
    response_data = {
        key: value for key, value in all_fields.items()
        if key in mandatory_fields or value is not None
    }

    return jsonify(response_data), HTTP_STATUS_CODES[status_code]


def stock_error_response(error):
    """
    Envelope for a stock-domain failure. The error carries its own code,
    HTTP status key and, for shortfalls, the uncovered amount.
    """
    data = None
    shortfall = getattr(error, "shortfall", None)
    if shortfall is not None:
        data = {"shortfall": str(shortfall)}
        requested = getattr(error, "requested", None)
        if requested is not None:
            data["requested"] = str(requested)

    return prepared_response(
        status=False,
        status_code=error.status_code,
        message=error.message,
        data=data,
        errors=[error.to_dict()],
    )
