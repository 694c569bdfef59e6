import logging

from . import ConnectionClosedException, ProxyFileException
from .ad import Ad

logger = logging.getLogger(__name__)

def run(handler, transport) -> Ad:
    """Drive one command handler over a connected transport.

    Sends the handler's command ads one at a time; after each, reads
    response ads and feeds them to the handler until it expects no more or
    the server closes the stream. The next command is not formed before
    the previous response sequence is over.

    Args:
        handler (Command): an initialized command handler.
        transport (Transport): the connection to the server.

    Returns:
        Ad: the last response received, or an ``error`` ad describing why the
        exchange failed.

    Raises:
        ProxyFileException: a submit ad named an unreadable x509 proxy file.
    """
    try:
        while True:
            ad = handler.command()
            transport.write( (str(ad)+'\n').encode('utf-8') )
            transport.flush()
            ##
            res = None
            while True:
                ad = Ad.parse(transport.reader)
                if ad is None:
                    break
                logger.debug('<-- %s', ad)
                res = ad
                if not handler.handle(ad):
                    break
            if res is None:
                raise ConnectionClosedException('connection closed')
            ##
            if not handler.has_more_commands():
                break
        return handler.outcome(res)
    except ProxyFileException:
        raise
    except Exception as e:
        logger.debug('exchange failed', exc_info=True)
        return Ad('error', str(e) or type(e).__name__)
    finally:
        handler.complete()
