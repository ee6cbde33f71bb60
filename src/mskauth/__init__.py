#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""AWS credential resolution for SASL/IAM authentication to Amazon MSK.

## Overview

`mskauth` resolves the AWS credentials used to sign the IAM authentication
payload a streaming client sends to an Amazon MSK broker. The client supplies a
handful of options, typically on its pluggable authentication configuration
line, and receives a single object that hands out valid AWS credentials while
hiding which mechanism actually supplied them:

    sasl.jaas.config = software.amazon.msk.auth.iam.IAMLoginModule required awsProfileName="dev";

### Library Usage

The module of interest to most users is `mskauth.resolver`, which contains the
`mskauth.resolver.CredentialResolver`. Build one per connection or session and
close it when done:

    from mskauth.resolver import CredentialResolver

    with CredentialResolver({"awsRoleArn": "arn:aws:iam::111222333444:role/Kafka"}) as r:
        creds = r.get_credentials()
        sign(creds.access_key_id, creds.secret_access_key, creds.session_token)

The remaining submodules are:

`mskauth.creds`
: The `mskauth.creds.Credentials` snapshot, the `mskauth.creds.CredentialSource`
interface every source implements, and the exceptions raised during resolution.

`mskauth.creds.aws`
: The leaf sources: environment variables, system properties, named profiles,
web identity tokens, and container or instance metadata.

`mskauth.creds.sts`
: The assumed-role source, which refreshes its session in the background.

`mskauth.creds.chain`
: The ordered fallback composition of sources.

`mskauth.config`
: Type-checked option access and the authentication-line parser.

`mskauth.cache`
: Thread-safe expiring values used by the caching sources.
"""

__version__ = "1.0.0"
