from digital_ink.main import main

main()
