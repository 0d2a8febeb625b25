"""
Endpoint resolution for SQL Server server strings.

Accepted forms are ``host``, ``host,port``, ``host:port`` and ``host\\instance``.
Named instances are mapped to a TCP port by asking the SQL Server Browser
service over UDP 1434 (SSRP, CLNT_UCAST_INST request).
"""

import asyncio
import ipaddress
import logging
import socket
from typing import List, NamedTuple, Optional, Tuple

from shared.errors import (SsrpError, HostResolutionError, SsrpTimeoutError, InvalidResponseError,
                           PortNotFoundError, SsrpIoError, InstanceResolutionError)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1433
SSRP_PORT = 1434
SSRP_TIMEOUT = 2.0
SSRP_BUFFER_SIZE = 1024

CLNT_UCAST_INST = 0x04
SVR_RESP = 0x05


class ServerAddress(NamedTuple):
    host: str
    port: Optional[int]
    instance: Optional[str] = None


def _parse_port(text: str) -> Optional[int]:
    text = text.strip()
    if not text.isdigit():
        return None
    port = int(text)
    if 1 <= port <= 65535:
        return port
    return None


def _strip_brackets(host: str) -> str:
    host = host.strip()
    if host.startswith('[') and host.endswith(']'):
        return host[1:-1]
    return host


def parse_server_address(server: str) -> ServerAddress:
    """
    Split a server string into host and port, or host and instance name.

    Rules are applied in order: ``host,port``, then ``host:port`` (split at
    the last colon), then ``host\\instance``, then a bare host on 1433.
    """
    server = server.strip()

    if ',' in server:
        host, _, port_text = server.partition(',')
        port = _parse_port(port_text)
        if port is not None:
            return ServerAddress(_strip_brackets(host), port)

    if ':' in server:
        host, _, port_text = server.rpartition(':')
        port = _parse_port(port_text)
        # bare IPv6 literals are never split
        if port is not None and (':' not in host or host.startswith('[')):
            return ServerAddress(_strip_brackets(host), port)

    if '\\' in server:
        host, _, instance = server.partition('\\')
        instance = instance.strip()
        if instance:
            return ServerAddress(_strip_brackets(host), None, instance)
        return ServerAddress(_strip_brackets(host), DEFAULT_PORT)

    return ServerAddress(_strip_brackets(server), DEFAULT_PORT)


async def resolve_endpoint(server: str) -> Tuple[str, int]:
    """Resolve a server string to a (host, port) pair ready for TCP connect."""
    address = parse_server_address(server)
    if address.instance is None:
        return address.host, address.port

    try:
        port = await resolve_instance_port(address.host, address.instance)
    except SsrpError as e:
        raise InstanceResolutionError(address.host, address.instance, str(e)) from e

    logger.info(f"Resolved instance {address.host}\\{address.instance} to TCP port {port}")
    return address.host, port


# ============================================================================
# SSRP
# ============================================================================

def build_ssrp_request(instance: str) -> bytes:
    """CLNT_UCAST_INST: 0x04 followed by the instance name, no terminator."""
    return bytes([CLNT_UCAST_INST]) + instance.encode('utf-8')


def parse_ssrp_response(data: bytes, instance: str) -> int:
    """
    Extract the TCP port from an SVR_RESP datagram.

    Layout: 0x05, two length bytes (little-endian), then an ASCII payload of
    ';'-delimited key/value pairs such as
    ``ServerName;H;InstanceName;I;IsClustered;No;Version;...;tcp;1444;;``.
    """
    if len(data) <= 3 or data[0] != SVR_RESP:
        raise InvalidResponseError()

    tokens = data[3:].decode('ascii', errors='replace').split(';')
    for key, value in zip(tokens, tokens[1:]):
        if key.lower() == 'tcp':
            port = _parse_port(value)
            if port is None:
                raise InvalidResponseError()
            return port

    raise PortNotFoundError(instance)


async def resolve_browser_addrs(host: str, port: int = SSRP_PORT) -> List[tuple]:
    """Resolve the browser host to socket addresses, numeric IPs first."""
    try:
        ip = ipaddress.ip_address(_strip_brackets(host))
    except ValueError:
        ip = None

    if ip is not None:
        if ip.version == 6:
            return [(str(ip), port, 0, 0)]
        return [(str(ip), port)]

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as e:
        logger.debug(f"Address lookup for {host} failed: {e}")
        raise HostResolutionError(host) from e

    addrs = []
    for family, _, _, _, sockaddr in infos:
        if family in (socket.AF_INET, socket.AF_INET6) and sockaddr not in addrs:
            addrs.append(sockaddr)

    if not addrs:
        raise HostResolutionError(host)
    return addrs


class _BrowserProtocol(asyncio.DatagramProtocol):
    """Sends one request and resolves a future with the first datagram."""

    def __init__(self, request: bytes, target: tuple):
        self.request = request
        self.target = target
        self.response = asyncio.get_running_loop().create_future()

    def connection_made(self, transport):
        transport.sendto(self.request, self.target)

    def datagram_received(self, data, addr):
        if not self.response.done():
            self.response.set_result(data[:SSRP_BUFFER_SIZE])

    def error_received(self, exc):
        if not self.response.done():
            self.response.set_exception(exc)

    def connection_lost(self, exc):
        if exc is not None and not self.response.done():
            self.response.set_exception(exc)


async def _query_browser(target: tuple, request: bytes, timeout: float) -> bytes:
    loop = asyncio.get_running_loop()
    bind_addr = ('::', 0) if len(target) == 4 else ('0.0.0.0', 0)

    transport, protocol = await loop.create_datagram_endpoint(
        lambda: _BrowserProtocol(request, target),
        local_addr=bind_addr,
    )
    try:
        return await asyncio.wait_for(protocol.response, timeout)
    finally:
        transport.close()


async def resolve_instance_port(host: str, instance: str,
                                port: int = SSRP_PORT,
                                timeout: float = SSRP_TIMEOUT) -> int:
    """
    Ask the SQL Server Browser on ``host`` for the TCP port of ``instance``.

    Each resolved address is tried once. When all attempts fail, the most
    specific failure wins: PortNotFound > InvalidResponse > Timeout > Io.
    """
    addrs = await resolve_browser_addrs(host, port)
    request = build_ssrp_request(instance)

    timed_out = False
    invalid_response = False
    missing_port = False
    last_io_error: Optional[OSError] = None

    for target in addrs:
        try:
            data = await _query_browser(target, request, timeout)
        except asyncio.TimeoutError:
            logger.debug(f"SSRP request to {target[0]} timed out")
            timed_out = True
            continue
        except OSError as e:
            logger.debug(f"SSRP request to {target[0]} failed: {e}")
            last_io_error = e
            continue

        try:
            return parse_ssrp_response(data, instance)
        except InvalidResponseError:
            invalid_response = True
        except PortNotFoundError:
            missing_port = True

    if missing_port:
        raise PortNotFoundError(instance)
    if invalid_response:
        raise InvalidResponseError()
    if timed_out:
        raise SsrpTimeoutError()
    if last_io_error is not None:
        raise SsrpIoError(last_io_error)
    raise HostResolutionError(host)
