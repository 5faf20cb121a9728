"""
msvs-detect - locate and select a Microsoft C/C++ toolchain.

Discovers Visual Studio and Windows SDK installations, validates them and
emits the PATH/INCLUDE/LIB additions needed to use the preferred one.
"""

__version__ = "0.6.0"
