import ipaddress
import logging
import socket

import netifaces as ni

from . import AutoDetectFailureException

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10.0
PROBE_TIMEOUT = 0.05


class Transport:
    """A blocking TCP connection to a Stork server.

    Args:
        sock (socket.socket): a connected socket.
        host (str): the host it is connected to, for messages.
        port (int): the port it is connected to, for messages.
    """
    def __init__(self, sock:socket.socket, host:str='', port:int=0):
        self.sock = sock
        self.host, self.port = host, port
        self.reader = sock.makefile('rb')
        pass

    @classmethod
    def connect(cls, host:str, port:int, timeout:float=CONNECT_TIMEOUT) -> 'Transport':
        sock = socket.create_connection((host, port), timeout=timeout)
        ## only the connect phase is bounded; replies may take a while
        sock.settimeout(None)
        logger.debug('connected to %s:%d', host, port)
        return cls(sock, host, port)

    def write(self, data:bytes):
        logger.debug('--> %s', data.decode('utf-8', errors='replace').rstrip('\n'))
        self.sock.sendall(data)

    def flush(self):
        ## writes go straight to the socket
        pass

    def close(self):
        self.reader.close()
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        self.close()

    def __str__(self):
        return f'{self.host}:{self.port}'
    pass


def discover(port:int) -> str:
    """Find a server listening on `port` in the default gateway's network.

    Args:
        port (int): the server port to probe.

    Returns:
        str: the address of the first host accepting connections.
    """
    gateways = ni.gateways().get('default', {})
    if ni.AF_INET not in gateways:
        raise AutoDetectFailureException('no default IPv4 gateway.')
    _, iface_name = gateways[ni.AF_INET][:2]
    iface = ni.ifaddresses(iface_name)[ni.AF_INET][0]
    all_hosts = ipaddress.IPv4Network((iface['addr'], iface['netmask']), strict=False).hosts()
    ##
    logger.info('auto-detect server over %s ...', iface_name)
    for host in all_hosts:
        addr = str(host)
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(PROBE_TIMEOUT)
            if sock.connect_ex((addr, port)) == 0:
                logger.info('found server on %s', addr)
                return addr
    raise AutoDetectFailureException(f'no server found on {iface_name} port {port}.')
