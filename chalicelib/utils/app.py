import functools
from typing import Callable

from chalice import Response

from chalicelib.constants import status_codes
from chalicelib.utils.exceptions import NotAuthorizedException, AccessDenied, NotFound, InvalidArgument, \
    InvalidState
from chalicelib.utils.logger import logger, log_exception, new_request_id


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    return Response(
        body={
            'error': str(error),
            'exception': error.__class__.__name__,
            "message": str(msg),
            'error_id': getattr(logger, 'current_request_id'),
            'level': getattr(error, 'LEVEL', 'exception')
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def internal_error_response(error: Exception, func_name: str):
    """
    Details of unexpected errors stay in the logs, the caller gets the error_id only
    """
    log_exception(error=error, msg=f'function = {func_name}, error = {error}', status_code=status_codes.http500)
    return Response(
        body={
            'error': 'Internal server error',
            'exception': 'InternalServerError',
            'message': 'Unexpected error occurred, please contact support with error_id',
            'error_id': getattr(logger, 'current_request_id'),
            'level': 'exception'
        },
        status_code=status_codes.http500,
        headers={'Content-Type': 'application/json'}
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            new_request_id()
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except NotAuthorizedException as not_authorized:
            return error_response(
                error=not_authorized,
                msg='Authentication is required to access this resource',
                status_code=status_codes.http401)
        except AccessDenied as access_denied:
            return error_response(
                error=access_denied,
                msg="You don't have permissions to access this resource",
                status_code=status_codes.http403)
        except NotFound as not_found:
            return error_response(
                error=not_found,
                msg=f'function = {func.__name__} , error = {not_found}',
                status_code=status_codes.http404)
        except (InvalidArgument, InvalidState) as bad_request:
            return error_response(
                error=bad_request,
                msg=f'function = {func.__name__} , error = {bad_request}',
                status_code=status_codes.http400)
        except Exception as exception:
            return internal_error_response(exception, func.__name__)
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
