import functools
import json
import os
from typing import Dict

import jwt
from chalice.app import Request

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN
from chalicelib.utils import exceptions as utils_exceptions, db as utils_db
from chalicelib.utils.boto_clients import main_boto_region
from chalicelib.utils.logger import log_request, logger, log_exception

AUTH_MODE_COGNITO = 'cognito'
AUTH_MODE_USER_ID = 'user_id'


def cognito_idp_url() -> str:
    return f"https://cognito-idp.{main_boto_region()}.amazonaws.com/{os.environ['COGNITO_POOL_ID']}"


def cognito_jwk_url() -> str:
    return f'{cognito_idp_url()}/.well-known/jwks.json'


def get_token(request: Request) -> str:
    token = (request.headers or {}).get('authorization')
    if not token:
        raise utils_exceptions.NotAuthorizedException('Authorization header is missing')
    if token.lower().startswith('bearer '):
        token = token[len('bearer '):]
    return token.strip()


def user_id_from_cognito_token(token: str) -> str:
    try:
        jwks_client = jwt.PyJWKClient(cognito_jwk_url())
        signing_key = jwks_client.get_signing_key_from_jwt(token)
        decoded_jwt_token = jwt.decode(
            token,
            signing_key.key,
            algorithms=['RS256'],
            audience=os.environ['COGNITO_CLIENT_ID'],
            issuer=cognito_idp_url())
    except jwt.PyJWTError as error:
        setattr(error, 'LEVEL', 'warning')
        log_exception(error, 401, f"user_id_from_cognito_token ::: {error}")
        raise utils_exceptions.NotAuthorizedException('Token is invalid or expired')

    logger.info(json.dumps({
        'auth_result_cognito': {
            'username': decoded_jwt_token.get('cognito:username'),
            'sub': decoded_jwt_token.get('sub')
        }
    }))
    user_id = decoded_jwt_token.get('custom:user_id')
    if not user_id:
        raise utils_exceptions.NotAuthorizedException('Token does not carry a user id')
    return user_id


def get_user_role(user_id: str) -> str:
    """
    Raises NotFound when the user does not exist
    """
    try:
        user_item = utils_db.get_db_item(
            partkey=keys_structure.users_pk,
            sortkey=keys_structure.users_sk.format(user_id=user_id)
        )
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.NotFound(f'User {user_id} not found')
    return user_item.get('role')


def resolve_principal(request: Request) -> Dict:
    token = get_token(request)
    if os.environ.get('AUTH_MODE', AUTH_MODE_COGNITO) == AUTH_MODE_USER_ID:
        user_id = token
    else:
        user_id = user_id_from_cognito_token(token)
    try:
        user_item = utils_db.get_db_item(
            partkey=keys_structure.users_pk,
            sortkey=keys_structure.users_sk.format(user_id=user_id)
        )
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.NotAuthorizedException(f'Unknown user {user_id}')
    return {'user_id': user_id, 'role': user_item.get('role'), 'username': user_item.get('username')}


def authenticate(func):
    """
    Wrapper for endpoints which require user's authentication,
    the principal is attached to the request as auth_result
    """

    @functools.wraps(func)
    def result_auth(request: Request, *args, **kwargs):
        log_request(request)
        auth_result = resolve_principal(request)
        setattr(request, 'auth_result', auth_result)
        logger.info(f"authenticate ::: SUCCESS, {func.__name__=}, user_id={auth_result['user_id']}, "
                    f"role={auth_result['role']}")
        return func(request, *args, **kwargs)

    return result_auth


def require_role(auth_result: Dict, *roles: str):
    if auth_result.get('role') not in roles:
        raise utils_exceptions.AccessDenied(f"Role {auth_result.get('role')} is not allowed, expected one of {roles}")


def require_self_or_admin(auth_result: Dict, user_id: str):
    if auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != user_id:
        raise utils_exceptions.AccessDenied(f"User {auth_result.get('user_id')} can't access user {user_id}")


def require_owner_or_admin(auth_result: Dict, owner_id: str):
    if auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != owner_id:
        raise utils_exceptions.AccessDenied(f"User {auth_result.get('user_id')} is not the owner of the resource")
