#      _ _                                                              _
#   __| (_)___  ___ _____   _____ _ __ _   _        __ _  __ _  ___ _ __ | |_
#  / _` | / __|/ __/ _ \ \ / / _ \ '__| | | |_____ / _` |/ _` |/ _ \ '_ \| __|
# | (_| | \__ \ (_| (_) \ V /  __/ |  | |_| |_____| (_| | (_| |  __/ | | | |_
#  \__,_|_|___/\___\___/ \_/ \___|_|   \__, |      \__,_|\__, |\___|_| |_|\__|
#                                      |___/             |___/

__title__ = "discovery_agent"
__description__ = (
    "The Discovery Agent watches local network interfaces over rtnetlink and "
    "mirrors their addresses to a remote device directory."
)
__author__ = "Discovery Agent Developers"
__version__ = "1.0.0-1"
__status__ = "alpha"
__license__ = "BSD-3-Clause"
__license_url__ = "https://opensource.org/licenses/BSD-3-Clause"
