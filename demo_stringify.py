#!/usr/bin/env python3
"""
Demo: Decode a YAML document and print its compact canonical rendering.

Usage:
    python demo_stringify.py path/to/file.yaml
    cat file.yaml | python demo_stringify.py
"""

import logging
import sys

from yamlvalue import Decoder, DecodeError, parse, parse_file, stringify


SAMPLE = """\
name: demo
a: [1, 2, {b: "x"}]
c: null
"""


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if len(sys.argv) > 1:
            value = parse_file(sys.argv[1])
        elif not sys.stdin.isatty():
            value = parse(Decoder(sys.stdin.buffer))
        else:
            value = parse(Decoder(SAMPLE))
    except DecodeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(stringify(value))
    return 0


if __name__ == "__main__":
    sys.exit(main())
