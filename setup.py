# Copyright 2017 Google
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from setuptools import setup

setup(
    name='pcmsim',
    version='1.0.0',
    packages=['pcmsim', 'pcmsim.test'],
    package_dir={'pcmsim': 'pcmsim'},
    scripts=[],
    license='Apache 2.0',
    description='Rolling-horizon DC production-cost simulation of an '
    'electrical grid.',
    long_description=open('README.txt').read(),
    python_requires='>=3.8',
    install_requires=[
        'numpy >= 1.20',
        'pandas >= 1.2',
        'scipy >= 1.6',
        'ortools >= 9.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'pcmsim-example = pcmsim.simulation_example:main',
        ],
    },
)
