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


class CryptoHooks (object):
    """Customization points for ``CryptoManager``.

    Subclass and override to change engine options or to add lines to
    the output for each signature.  The defaults change nothing.

    >>> class AlwaysTrust (CryptoHooks):
    ...     def adjust_options(self, operation, options):
    ...         if operation == 'encrypt':
    ...             return dict(options, always_trust=True)
    >>> hooks = AlwaysTrust()
    >>> hooks.adjust_options('encrypt', {'armor': True})
    {'armor': True, 'always_trust': True}
    >>> print(hooks.adjust_options('sign', {'armor': True}))
    None
    """
    def adjust_options(self, operation, options):
        """Return replacement engine options for ``operation``, or None.

        ``operation`` is one of 'sign', 'encrypt', 'decrypt' or 'verify'.
        """
        return None

    def augment_signature_detail(self, signature, key):
        """Return extra output lines for a signature whose key resolved.
        """
        return None


if __name__ == '__main__':
    import doctest
    doctest.testmod()
