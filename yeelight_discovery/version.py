# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package yeelight_discovery discovers and decodes Yeelight smart lights on the local network
"""

# The following line is automatically updated with "semantic-release version"
__version__ =  "0.3.0"


__all__ = [ '__version__' ]
