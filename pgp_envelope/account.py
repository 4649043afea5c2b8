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

"""Mail accounts and the choice of signing identity.
"""

from email.utils import parseaddr as _parseaddr

from . import LOG as _LOG


class AccountIdentity (object):
    def __init__(self, email, gpgkey=None, name=None, default=False):
        self.email = email
        self.gpgkey = gpgkey
        self.name = name
        self.default = default

    def __str__(self):
        return '<{} {}>'.format(type(self).__name__, self.email)

    def __repr__(self):
        return str(self)


class AccountStore (object):
    """Configured accounts, in order.

    The first account is the default unless another one says otherwise.

    >>> store = AccountStore([
    ...     AccountIdentity('jack@hill.org'),
    ...     AccountIdentity('jill@hill.org', gpgkey='4332B6E3', default=True)])
    >>> store.default_account
    <AccountIdentity jill@hill.org>
    >>> store.account_for('Jack <JACK@hill.org>')
    <AccountIdentity jack@hill.org>
    >>> print(store.account_for('john@doe.net'))
    None
    >>> store.user_emails
    ['jack@hill.org', 'jill@hill.org']
    """
    def __init__(self, accounts=None):
        if accounts is None:
            accounts = []
        self.accounts = list(accounts)

    @property
    def default_account(self):
        for account in self.accounts:
            if account.default:
                return account
        if self.accounts:
            return self.accounts[0]
        return None

    def account_for(self, address):
        name,email = _parseaddr(address)
        email = email.lower()
        for account in self.accounts:
            if account.email and account.email.lower() == email:
                return account
        return None

    @property
    def user_emails(self):
        emails = []
        for account in self.accounts:
            if account.email and account.email not in emails:
                emails.append(account.email)
        return emails


def signing_options(sender, store):
    """Engine options selecting who signs mail from ``sender``.

    If the sender's account (or the default account) has a key, use it.
    With only one address configured, let the engine pick its default
    key.  Otherwise ask for the sender's address.

    >>> store = AccountStore([AccountIdentity('jack@hill.org', gpgkey='4332B6E3')])
    >>> signing_options('jack@hill.org', store)
    {'signers': ['4332B6E3']}
    >>> store = AccountStore([AccountIdentity('jack@hill.org')])
    >>> signing_options('jack@hill.org', store)
    {}
    >>> store.accounts.append(AccountIdentity('jill@hill.org'))
    >>> signing_options('jill@hill.org', store)
    {'signers': ['jill@hill.org']}
    """
    account = store.account_for(sender) or store.default_account
    if account is not None and account.gpgkey:
        opts = {'signers': [account.gpgkey]}
    elif len(store.user_emails) == 1:
        opts = {}
    else:
        name,email = _parseaddr(sender)
        opts = {'signers': [email or sender]}
    _LOG.debug('signing options for {}: {}'.format(sender, opts))
    return opts


if __name__ == '__main__':
    import doctest
    doctest.testmod()
