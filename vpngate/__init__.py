"""
VPN Gate port list package.

Modules:
- fetcher: Build the HTTP session and download the relay list
- parser: Parse line-delimited / CSV relay records
- decoder: Decode base64 OpenVPN configs and read the remote port
- extractor: Turn relay records into ported entries, in parallel
- writer: Write the JSON list
- errors: Pipeline error types
"""
