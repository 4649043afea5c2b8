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

"""Read engine and account settings from an INI file.

    [gpg]
    binary: /usr/bin/gpg2
    home: ~/.gnupg

    [account work]
    email: jdoe@a.gov.ru
    gpgkey: 4332B6E3
    default: yes
"""

import configparser as _configparser
import os.path as _os_path

from . import LOG as _LOG
from .account import AccountIdentity as _AccountIdentity
from .account import AccountStore as _AccountStore


ACCOUNT_PREFIX = 'account '


def load_config(path):
    config = _configparser.ConfigParser()
    read = config.read(_os_path.expanduser(path))
    if not read:
        _LOG.info('no configuration found at {}'.format(path))
    return config

def get_gpg_params(config):
    r"""Retrieve engine parameters from a config file.

    >>> from configparser import ConfigParser
    >>> config = ConfigParser()
    >>> config.read_string('\n'.join([
    ...             '[gpg]',
    ...             'binary: /usr/bin/gpg2',
    ...             ]))
    >>> get_gpg_params(config)
    ('/usr/bin/gpg2', None)
    >>> get_gpg_params(ConfigParser())
    (None, None)
    """
    try:
        binary = config.get('gpg', 'binary')
    except _configparser.NoSectionError:
        return (None, None)
    except _configparser.NoOptionError:
        binary = None
    try:
        home = config.get('gpg', 'home')
    except _configparser.NoOptionError:
        home = None
    else:
        home = _os_path.expanduser(home)
    return (binary, home)

def get_accounts(config):
    r"""Build an ``AccountStore`` from ``[account ...]`` sections.

    >>> from configparser import ConfigParser
    >>> config = ConfigParser()
    >>> config.read_string('\n'.join([
    ...             '[account home]',
    ...             'email: jack@hill.org',
    ...             '[account work]',
    ...             'email: jack@a.gov.ru',
    ...             'gpgkey: 4332B6E3',
    ...             'default: yes',
    ...             ]))
    >>> store = get_accounts(config)
    >>> store.accounts
    [<AccountIdentity jack@hill.org>, <AccountIdentity jack@a.gov.ru>]
    >>> store.default_account.gpgkey
    '4332B6E3'
    """
    accounts = []
    for section in config.sections():
        if not section.startswith(ACCOUNT_PREFIX):
            continue
        name = section[len(ACCOUNT_PREFIX):].strip()
        try:
            email = config.get(section, 'email')
        except _configparser.NoOptionError:
            _LOG.info('account {} has no email address'.format(name))
            email = None
        gpgkey = config.get(section, 'gpgkey', fallback=None)
        default = config.getboolean(section, 'default', fallback=False)
        accounts.append(_AccountIdentity(
                email=email, gpgkey=gpgkey, name=name, default=default))
    return _AccountStore(accounts)


if __name__ == '__main__':
    import doctest
    doctest.testmod()
