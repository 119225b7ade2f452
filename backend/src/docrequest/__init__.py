"""DocRequest backend - secure external document requests.

Operators request supporting documents from an external party through a
single-use, time-limited upload link. Uploads are staged, reviewed, and
committed to the originating record.
"""

__version__ = "0.1.0"
