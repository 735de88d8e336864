#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from ova2pve.__main__ import cli


if __name__ == "__main__":
    cli()
