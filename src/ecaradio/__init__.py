# ecaradio: crossfaded radio mixes and take recording driven through ecasound
# Package: ecaradio

__version__ = "1.0.0-dev"
__author__ = "ecaradio contributors"
__description__ = "Offline crossfade rendering and live take recording via the ecasound control interface"

# Module structure:
#   - ecaradio.engine   : ECI client, bounded status polling, app context, JACK routing
#   - ecaradio.render   : envelopes, virtual files, timeline sequencing, command emission
#   - ecaradio.analyze  : length measurement, marker splitting, silence markers
#   - ecaradio.session  : sessions, tracks, takes, live transport
#   - ecaradio.config   : Configuration management
#   - ecaradio.cli      : Command-line interface
