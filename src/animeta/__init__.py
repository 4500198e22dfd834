# ABOUTME: animeta resolves anime metadata from Bangumi and Hanime into one record.
# ABOUTME: Package root; the CLI lives in animeta.cli and the host interface in animeta.service.
