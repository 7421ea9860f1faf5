import json
import os

from botocore.exceptions import BotoCoreError, ClientError

from chalicelib.utils.boto_clients import sns_client
from chalicelib.utils.logger import logger


def publish_order_status(order_id: str, status: str) -> bool:
    """
    Fire-and-forget notification for real-time order tracking, failures never reach the caller
    """
    topic_arn = os.environ.get('ORDER_STATUS_TOPIC_ARN')
    if not topic_arn:
        logger.debug(f'publish_order_status ::: topic is not configured, skipping {order_id=} {status=}')
        return False
    logger.info(f'Publishing order status {order_id=}, {status=}')
    try:
        response = sns_client().publish(
            TopicArn=topic_arn,
            Message=json.dumps({'order_id': order_id, 'status': status}),
            Subject='order-status',
            MessageAttributes={'order_id': {'DataType': 'String', 'StringValue': order_id}}
        )
    except (BotoCoreError, ClientError) as error:
        logger.warning(f'publish_order_status ::: failed to publish {order_id=} {status=}, {error=}')
        return False
    logger.info(f'Order status has been published, message_id={response.get("MessageId")}')
    return True
