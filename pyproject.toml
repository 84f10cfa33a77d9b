[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trafficrefinery"
version = "0.1.0"
description = "Passive network traffic monitoring: packet decoding, direction detection, DNS- and prefix-driven service mapping, flow records, periodic JSON statistics and Crypto-PAn address anonymisation."
requires-python = ">=3.10"
keywords = [
    "network",
    "monitoring",
    "flows",
    "dns",
    "pcap",
    "cryptopan",
    "anonymization",
    "traffic-analysis",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
    "Topic :: Internet :: Log Analysis",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "dnspython",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["trafficrefinery"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
