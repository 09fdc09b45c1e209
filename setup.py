from setuptools import find_packages, setup
import os
from glob import glob

package_name = 'scan_geometry'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        # Include reference parameter files
        (os.path.join('share', package_name, 'config'), glob('config/*.yaml')),
    ],
    python_requires='>=3.8',
    install_requires=['setuptools', 'numpy', 'PyYAML'],
    zip_safe=True,
    maintainer='SAI ESWARA M',
    maintainer_email='saimurali2005@gmail.com',
    description='Line and circle extraction from 2D range-sensor point clouds',
    license='MIT',
    tests_require=['pytest'],
    extras_require={
        'test': ['pytest'],
    },
)
