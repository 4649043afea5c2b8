# Copyright (C) 2014 Johannes Schlatow <johannes.schlatow@googlemail.com>
# Copyright (C) 2012 W. Trevor King <wking@tremily.us>
#
# This file is part of pgp-envelope.
#
# pgp-envelope is free software: you can redistribute it and/or modify it
# under the terms of the GNU General Public License as published by the Free
# Software Foundation, either version 3 of the License, or (at your option)
# any later version.
#
# pgp-envelope is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General Public License for
# more details.
#
# You should have received a copy of the GNU General Public License along with
# pgp-envelope.  If not, see <http://www.gnu.org/licenses/>.

"Sign, encrypt, verify and decrypt PGP/MIME email for mail clients."

from setuptools import setup as _setup
import os.path as _os_path

from pgp_envelope import __version__


_this_dir = _os_path.dirname(__file__)

_setup(
    name='pgp-envelope',
    version=__version__,
    maintainer='Ian Haywood',
    maintainer_email='ian@haywood.id.au',
    license = 'GNU General Public License (GPL)',
    platforms = ['all'],
    description = __doc__,
    long_description=open(_os_path.join(_this_dir, 'README.md'), 'r').read(),
    long_description_content_type='text/markdown',
    classifiers = [
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: GNU General Public License (GPL)',
        'Programming Language :: Python :: 3',
        'Topic :: Communications :: Email',
        'Topic :: Security :: Cryptography',
        'Topic :: Software Development'
        ],
    packages = ['pgp_envelope'],
    provides = ['pgp_envelope'],
    extras_require = {
        'gpgme': ['gpg'],
        'test': ['pytest'],
        },
    )
