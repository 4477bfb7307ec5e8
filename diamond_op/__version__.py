__title__ = 'diamond_op'
__description__ = 'Read lines from files and stdin like the Perl diamond operator'
__version__ = '2026.10.18'
__author__ = 'Doug Skrypa'
