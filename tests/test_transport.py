#!/usr/bin/env python3
import socket
import unittest
from unittest import TestCase, mock

from stork_client import AutoDetectFailureException
from stork_client.ad import Ad
from stork_client.transport import Transport, discover

def _netifaces():
    ni = mock.MagicMock()
    ni.AF_INET = socket.AF_INET
    ni.gateways.return_value = {'default': {socket.AF_INET: ('127.0.0.1', 'lo')}}
    ni.ifaddresses.return_value = {socket.AF_INET: [{'addr':'127.0.0.1', 'netmask':'255.255.255.252'}]}
    return ni

class TestTransport(TestCase):
    def setUp(self):
        self.listener = socket.socket()
        self.listener.bind(('127.0.0.1', 0))
        self.listener.listen(1)
        self.port = self.listener.getsockname()[1]

    def tearDown(self):
        self.listener.close()

    def test_round_trip(self):
        with Transport.connect('127.0.0.1', self.port) as t:
            conn, _ = self.listener.accept()
            with conn:
                t.write(b'[ command = "info" ]\n')
                t.flush()
                self.assertEqual(conn.recv(64), b'[ command = "info" ]\n')
                conn.sendall(b'[ ok = true ]\n')
                self.assertEqual(Ad.parse(t.reader), {'ok':True})
            self.assertEqual(str(t), f'127.0.0.1:{self.port}')

    def test_discover(self):
        with mock.patch('stork_client.transport.ni', _netifaces()):
            self.assertEqual(discover(self.port), '127.0.0.1')

    def test_discover_nothing(self):
        port = self.port
        self.listener.close()
        with mock.patch('stork_client.transport.ni', _netifaces()):
            with self.assertRaises(AutoDetectFailureException):
                discover(port)

    def test_discover_without_gateway(self):
        ni = _netifaces()
        ni.gateways.return_value = {'default': {}}
        with mock.patch('stork_client.transport.ni', ni):
            with self.assertRaises(AutoDetectFailureException):
                discover(self.port)
    pass

if __name__ == '__main__':
    unittest.main()
