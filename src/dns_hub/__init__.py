"""
DNS Hub - unified DNS record management across many DNS providers.

This package provides the provider abstraction and record normalization
layer that sits between a DNS management front end and a multi-provider
backend (Cloudflare, Alibaba Cloud DNS, Tencent DNSPod, Huawei Cloud and
others).
"""

__version__ = "0.1.0"
__author__ = "DNS Hub Contributors"
