import os
import secrets
from typing import Dict

from botocore.exceptions import ClientError
from chalice import Response
from pycognito import Cognito

from chalicelib.constants.status_codes import http200
from chalicelib.utils import app as utils_app, data as utils_data, exceptions
from chalicelib.utils.boto_clients import cognito_client, main_boto_region
from chalicelib.utils.logger import logger


class CognitoCredentials:
    """
    Credential side of a user account: username, password and role live in the Cognito user pool,
    the profile lives in DynamoDB (see users.User)
    """

    def __init__(self, pool_id=None, client_id=None, region=None):
        self.pool_id = pool_id or os.environ.get('COGNITO_POOL_ID')
        self.client_id = client_id or os.environ.get('COGNITO_CLIENT_ID')
        self.region = region or main_boto_region()

    def _cognito(self, **kwargs) -> Cognito:
        return Cognito(self.pool_id, self.client_id, user_pool_region=self.region, **kwargs)

    def register(self, username: str, password: str, email: str, role: str, user_id: str) -> None:
        logger.info(f'CognitoCredentials.register ::: {username=}, {role=}, {user_id=}')
        self._cognito().admin_create_user(
            username,
            temporary_password=secrets.token_urlsafe(12),
            additional_kwargs={'MessageAction': 'SUPPRESS'},
            attr_map={'custom:role': 'role', 'custom:user_id': 'user_id'},
            email=email,
            role=role,
            user_id=user_id
        )
        cognito_client().admin_set_user_password(
            UserPoolId=self.pool_id,
            Username=username,
            Password=password,
            Permanent=True
        )

    def login(self, username: str, password: str) -> Dict:
        u = self._cognito(username=username)
        try:
            u.authenticate(password=password)
        except ClientError as error:
            logger.warning(f'CognitoCredentials.login ::: {username=}, {error=}')
            raise exceptions.NotAuthorizedException('Wrong username or password')
        return {
            'token': u.id_token,
            'id_token': u.id_token,
            'access_token': u.access_token,
            'refresh_token': u.refresh_token
        }

    def refresh(self, id_token: str, refresh_token: str) -> str:
        u = self._cognito(id_token=id_token, refresh_token=refresh_token)
        try:
            u.renew_access_token()
        except ClientError as error:
            logger.warning(f'CognitoCredentials.refresh ::: {error=}')
            raise exceptions.NotAuthorizedException('Refresh token is invalid or expired')
        return u.id_token

    def logout(self, access_token: str) -> None:
        u = self._cognito(access_token=access_token)
        try:
            u.logout()
        except ClientError as error:
            logger.warning(f'CognitoCredentials.logout ::: {error=}')
            raise exceptions.NotAuthorizedException('Access token is invalid or expired')

    def delete(self, username: str) -> None:
        logger.info(f'CognitoCredentials.delete ::: {username=}')
        self._cognito(username=username).admin_delete_user()


def credentials() -> CognitoCredentials:
    return CognitoCredentials()


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_login(request):
    body = utils_data.parse_raw_body(request)
    username = utils_data.require_param(body, 'username')
    password = utils_data.require_param(body, 'password')
    return Response(status_code=http200, body=credentials().login(username, password))


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_refresh(request):
    body = utils_data.parse_raw_body(request)
    id_token = credentials().refresh(
        utils_data.require_param(body, 'id_token'),
        utils_data.require_param(body, 'refresh_token')
    )
    return Response(status_code=http200, body={'status': 'success', 'id_token': id_token})


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_logout(request):
    body = utils_data.parse_raw_body(request)
    credentials().logout(utils_data.require_param(body, 'access_token'))
    return Response(status_code=http200, body={'message': 'Logged out'})
