#!/usr/bin/env python3
import io
import unittest
from unittest import TestCase

from stork_client import AdParseException
from stork_client.ad import Ad, AdStream

class TestAdParse(TestCase):
    def test_scalars(self):
        ad = Ad.parse_string('[ s = "x y"; i = -1; f = 2.5; t = true; n = false ]')
        self.assertEqual(ad, {'s':'x y', 'i':-1, 'f':2.5, 't':True, 'n':False})

    def test_nested_and_lists(self):
        ad = Ad.parse_string('[ entries = { "a", "b" }; jobs = { [ job_id = 1 ], [ job_id = 2 ] }; empty = { } ]')
        self.assertEqual(ad['entries'], ['a', 'b'])
        self.assertEqual([ j.get_int('job_id') for j in ad.get_ads('jobs') ], [1, 2])
        self.assertEqual(ad['empty'], [])

    def test_multiline_with_comments(self):
        text = '# a job\n[\n  src = "ftp://a/f";  # source\n  dest = "ftp://b/f";\n]\n'
        self.assertEqual(Ad.parse_string(text), {'src':'ftp://a/f', 'dest':'ftp://b/f'})

    def test_escapes(self):
        ad = Ad.parse_string(r'[ s = "line\n\"quoted\" é" ]')
        self.assertEqual(ad['s'], 'line\n"quoted" é')

    def test_undefined_is_dropped(self):
        self.assertEqual(Ad.parse_string('[ a = undefined; b = 1; ]'), {'b':1})

    def test_empty(self):
        self.assertEqual(Ad.parse_string('[ ]'), {})
        self.assertIsNone(Ad.parse_string('   \n # nothing here\n'))
        self.assertIsNone(Ad.parse_string(''))

    def test_stops_after_closing_bracket(self):
        stream = io.BytesIO(b'[ a = 1 ][ b = 2 ]tail')
        self.assertEqual(Ad.parse(stream), {'a':1})
        self.assertEqual(stream.read(), b'[ b = 2 ]tail')

    def test_malformed(self):
        for text in ['[ a = 1', '[ a 1 ]', '[ a = "open ]', 'a = 1', '[ = 1 ]', '[ a = 1 b = 2 ]', '[ a = bogus ]']:
            with self.assertRaises(AdParseException, msg=text):
                Ad.parse_string(text)
    pass

class TestAdFormat(TestCase):
    def test_canonical_form(self):
        ad = Ad('command', 'ls').put('uri', 'ftp://h/p').put('depth', -1).put('count', True)
        self.assertEqual(str(ad), '[ command = "ls"; uri = "ftp://h/p"; depth = -1; count = true ]')
        self.assertEqual(str(Ad()), '[ ]')

    def test_single_line(self):
        ad = Ad('x509_proxy', 'XYZ\nABC\n').put('jobs', [ {'job_id':1} ])
        self.assertNotIn('\n', str(ad))
        self.assertEqual(Ad.parse_string(str(ad)), ad)

    def test_accessors(self):
        ad = Ad({'n':'7', 'flag':'true'})
        self.assertEqual(ad.get_int('n'), 7)
        self.assertEqual(ad.get_int('missing', 3), 3)
        self.assertTrue(ad.get_bool('flag'))
        self.assertFalse(ad.get_bool('missing'))
        self.assertEqual(ad.remove('n'), '7')
        self.assertIsNone(ad.remove('n'))
        self.assertFalse(ad.has('n'))
        self.assertEqual(ad.get_ads('flag'), [])

    def test_unencodable(self):
        with self.assertRaises(TypeError):
            str(Ad('a', object()))
    pass

class TestAdStream(TestCase):
    def test_peek_and_next(self):
        ads = AdStream(io.BytesIO(b'[ a = 1 ]\n[ a = 2 ]\n\n  '))
        self.assertEqual(ads.peek(), {'a':1})
        self.assertEqual(ads.peek(), {'a':1})
        self.assertEqual(ads.next(), {'a':1})
        self.assertEqual(ads.next(), {'a':2})
        self.assertIsNone(ads.peek())
        self.assertIsNone(ads.next())

    def test_iteration(self):
        ads = AdStream(io.BytesIO(b'[ a = 1 ] [ a = 2 ] [ a = 3 ]'))
        self.assertEqual([ ad['a'] for ad in ads ], [1, 2, 3])
    pass

if __name__ == '__main__':
    unittest.main()
