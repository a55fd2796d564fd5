from __future__ import annotations

MULTICAST_ADDRESS = "239.255.255.250"
MULTICAST_PORT = 1982
MULTICAST_TTL = 2
SEARCH_TARGET = "wifi_bulb"
LOCATION_SCHEME = "yeelight://"

RECV_BUFFER_SIZE = 4096

# Timeouts (seconds)
DISCOVERY_TIMEOUT = 3.0
COMMAND_TIMEOUT = 5.0
CONNECT_TIMEOUT = 0.5

# Smooth transition applied to every set_* command (milliseconds)
TRANSITION_EFFECT = "smooth"
TRANSITION_DURATION = 300

LINE_TERMINATOR = b"\r\n"

METHOD_SET_POWER = "set_power"
METHOD_SET_BRIGHT = "set_bright"
METHOD_SET_CT_ABX = "set_ct_abx"
METHOD_SET_RGB = "set_rgb"
METHOD_GET_PROP = "get_prop"
METHOD_PROPS = "props"

PROP_POWER = "power"
PROP_BRIGHT = "bright"
PROP_CT = "ct"
PROP_RGB = "rgb"
PROP_COLOR_MODE = "color_mode"

STATE_PROPERTIES = [PROP_POWER, PROP_BRIGHT, PROP_CT, PROP_RGB, PROP_COLOR_MODE]

POWER_ON = "on"
POWER_OFF = "off"

BRIGHTNESS_MIN = 1
BRIGHTNESS_MAX = 100

COLOR_TEMP_MIN = 1700
COLOR_TEMP_MAX = 6500

RGB_CHANNEL_MIN = 0
RGB_CHANNEL_MAX = 255
RGB_MAX = 16777215

# Advertised state defaults when a header is absent or unparseable
DEFAULT_POWER = False
DEFAULT_BRIGHTNESS = 100
DEFAULT_COLOR_TEMP = 4000
DEFAULT_RGB = RGB_MAX
DEFAULT_COLOR_MODE = 2

DEFAULT_MODEL = "unknown"
DEFAULT_NAME_PREFIX = "Yeelight"
DEFAULT_NAME_FALLBACK = "Bulb"

OK_RESULT = ["ok"]
