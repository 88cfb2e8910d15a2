""" Build and send HipChat room notifications over the v1 and v2 APIs. """

import logging
from collections import namedtuple

import requests

from hipnotify.exception import TransportError
from hipnotify.transform import transform_message, v1_encode, v2_escape

V1_MESSAGE_POST = "https://{host}/v1/rooms/message"
V2_NOTIFICATION_POST = "https://{host}/v2/room/{room_id}/notification"
AUTH_HEADER_FIELD = "Authorization"
AUTH_HEADER_VALUE = "Bearer {}"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

V1_BODY = (
    "auth_token={token}&room_id={room_id}&from={from_name}&color={color}"
    "&message_format={message_format}&message={message}&notify={notify}"
)

LOG = logging.getLogger(__name__)

EncodedRequest = namedtuple('EncodedRequest', ['method', 'url', 'headers', 'body'])


def read_message(config, stream):
    """
    Return the explicit message from the configuration, or everything left on the binary stream.

    Stream bytes that are not valid UTF-8 are kept as surrogate escapes so that encoding
    the message restores them unchanged.
    """
    if config.message is not None:
        return config.message
    return stream.read().decode('utf-8', 'surrogateescape')


def _encode_v1(message, config):
    body = V1_BODY.format(
        token=config.token,
        room_id=config.room_id,
        from_name=config.from_name or '',
        color=config.color,
        message_format=config.message_format,
        message=v1_encode(message),
        notify=1 if config.notify else 0,
    )
    return EncodedRequest(
        method='POST',
        url=V1_MESSAGE_POST.format(host=config.host),
        headers={'Content-Type': FORM_CONTENT_TYPE},
        body=body.encode('utf-8', 'surrogateescape'),
    )


def _encode_v2(message, config):
    fields = ['"color": "{}"'.format(config.color)]
    if config.from_name:
        fields.append('"from": "{}"'.format(config.from_name))
    fields.append('"message":"{}"'.format(v2_escape(message)))
    fields.append('"message_format":"{}"'.format(config.message_format))
    fields.append('"notify":{}'.format('true' if config.notify else 'false'))
    body = '{' + ', '.join(fields) + '}'
    return EncodedRequest(
        method='POST',
        url=V2_NOTIFICATION_POST.format(host=config.host, room_id=config.room_id),
        headers={
            'Content-Type': JSON_CONTENT_TYPE,
            AUTH_HEADER_FIELD: AUTH_HEADER_VALUE.format(config.token),
        },
        body=body.encode('utf-8', 'surrogateescape'),
    )


def encode(raw_input, config):
    """
    Turn raw message text into a request for the configured API version.

    Args:
        raw_input (str): Message text, untrimmed.
        config (Configuration): Resolved options.

    Returns:
        EncodedRequest
    """
    message = transform_message(raw_input, config.message_format)
    if config.api_version == 'v2':
        return _encode_v2(message, config)
    return _encode_v1(message, config)


def send_http(method, url, headers, body, verify=True):
    """
    Issue a single HTTP request.

    Returns:
        (int, str): The response status code and body text.

    Raises:
        TransportError: when the request could not be completed.
    """
    try:
        response = requests.request(method, url, headers=headers, data=body, verify=verify)
    except requests.exceptions.RequestException as exc:
        raise TransportError(str(exc)) from exc
    return response.status_code, response.text


def submit_room_message(raw_input, config):
    """
    Post a message to a HipChat room.

    Args:
        raw_input (str): Message text.
        config (Configuration): Resolved options.

    Returns:
        (int, str): The response status code and body text. The status is not interpreted.
    """
    request = encode(raw_input, config)
    LOG.info("Sending %s message to room %s via %s", config.api_version, config.room_id, request.url)
    if config.allow_insecure_tls:
        LOG.warning("TLS certificate verification is disabled")
    status_code, text = send_http(
        request.method, request.url, request.headers, request.body,
        verify=not config.allow_insecure_tls,
    )
    LOG.debug("HipChat responded with status %s", status_code)
    return status_code, text
