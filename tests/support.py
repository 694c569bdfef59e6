import io
import socketserver
import threading

from stork_client import AdParseException
from stork_client.ad import Ad, AdStream


class FakeTransport:
    '''In-memory transport: responses come from `replies`, requests pile up in `out`.'''
    def __init__(self, *replies):
        data = ''.join( r if isinstance(r, str) else str(r)+'\n' for r in replies )
        self.reader = io.BytesIO(data.encode('utf-8'))
        self.out = io.BytesIO()
        self.closed = False
        pass

    def write(self, data:bytes):
        self.out.write(data)

    def flush(self):
        pass

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        self.close()

    @property
    def requests(self) -> list:
        return list( AdStream(io.BytesIO(self.out.getvalue())) )
    pass


class _RequestHandler(socketserver.StreamRequestHandler):
    def handle(self):
        while True:
            try:
                ad = Ad.parse(self.rfile)
            except AdParseException:
                return
            if ad is None:
                return
            self.server.requests.append(ad)
            ##
            reply = self.server.replies.get(ad.get('command'), [])
            ads = reply(ad) if callable(reply) else reply
            for res in ads:
                if res is None:
                    return
                self.wfile.write( (str(res)+'\n').encode('utf-8') )
            self.wfile.flush()
    pass


class StorkServer(socketserver.ThreadingTCPServer):
    """A scripted loopback server.

    Args:
        replies (dict): command name -> list of response ads (or a function of
            the request returning one); a None entry closes the connection.
    """
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, replies:dict=None):
        super().__init__(('127.0.0.1', 0), _RequestHandler)
        self.replies = replies or {}
        self.requests = list()
        pass

    @property
    def port(self) -> int:
        return self.server_address[1]

    def start(self):
        self.thread = threading.Thread(target=self.serve_forever, daemon=True)
        self.thread.start()
        return self

    def stop(self):
        self.shutdown()
        self.server_close()
    pass
